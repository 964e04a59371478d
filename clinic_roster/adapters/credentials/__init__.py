"""Credential verifier adapters."""

from clinic_roster.adapters.credentials.jwt_verifier import JWTCredentialVerifier

__all__ = ["JWTCredentialVerifier"]
