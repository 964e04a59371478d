"""Adapters for Clinic Roster: document store and credential verifier."""
