"""Clinic Roster: organization roster service for the clinical-records dashboard."""

__version__ = "1.0.0"
