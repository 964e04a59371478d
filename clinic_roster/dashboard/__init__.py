"""Dashboard module for Clinic Roster.

This module provides the FastAPI-based backend consumed by the clinical
dashboard: the organization directory and per-organization doctor rosters.
"""

__version__ = "1.0.0"
