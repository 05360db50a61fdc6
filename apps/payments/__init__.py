"""Payments app package.

Creates gateway orders for bookings (Cashfree-compatible REST API, or a
simulated checkout when no credentials are configured) and applies
payment callbacks to bookings exactly once.
"""
