"""Domain Services.

This package contains domain services that implement business logic
without infrastructure dependencies.
"""

from clinic_roster.domain.services.authorization_guard import AuthorizationGuard, extract_bearer_token

__all__ = ['AuthorizationGuard', 'extract_bearer_token']
