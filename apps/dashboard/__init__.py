"""Admin overview across venues, bookings and revenue."""
