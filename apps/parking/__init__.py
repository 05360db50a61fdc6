"""Parking app package.

The slot-reservation engine shared by events, universities and airports:
grid generation, layout views and the atomic claim/release of slots.
"""
