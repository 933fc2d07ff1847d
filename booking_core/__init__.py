"""Appointment scheduling and conflict-resolution core."""

__version__ = "0.1.0"
