"""Bookings app package.

This app owns the booking lifecycle: creating a booking claims slots
through the parking engine and opens a payment hold; payment, expiry,
cancellation and completion move it through its statuses. Command
handlers run inside a unit of work and publish domain events only after
the transaction commits.
"""
