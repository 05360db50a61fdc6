"""Vendor tools: per-venue dashboards and customer check-in at the gate."""
