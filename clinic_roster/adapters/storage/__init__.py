"""Storage adapters for Clinic Roster.

This module contains storage adapters that implement the DocumentStorePort
interface for reading organizations, users and patients.
"""

from clinic_roster.adapters.storage.mongodb_adapter import MongoDBAdapter

__all__ = ["MongoDBAdapter"]
