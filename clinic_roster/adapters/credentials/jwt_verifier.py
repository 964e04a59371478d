"""JWT Credential Verifier.

This adapter implements the CredentialVerifierPort contract with PyJWT,
verifying HMAC-signed tokens against the shared secret.

Security Impact:
    - Only the configured algorithms are accepted; ``none`` is refused at
      configuration time
    - Expiry is enforced when the token carries an ``exp`` claim
    - The secret is read from SecretStr and never logged
"""

from typing import Optional

import jwt

from clinic_roster.domain.ports import CredentialVerifierPort, InvalidCredentialError
from clinic_roster.infrastructure.config_manager import AuthConfig


class JWTCredentialVerifier(CredentialVerifierPort):
    """PyJWT implementation of CredentialVerifierPort.

    Parameters:
        auth_config: AuthConfig from configuration manager
    """

    def __init__(self, auth_config: Optional[AuthConfig] = None):
        self.auth_config = auth_config or AuthConfig()

    def verify(self, token: str) -> dict:
        if not token:
            raise InvalidCredentialError("empty token")
        try:
            claims = jwt.decode(
                token,
                self.auth_config.jwt_secret.get_secret_value(),
                algorithms=self.auth_config.algorithms,
            )
        except jwt.PyJWTError as e:
            raise InvalidCredentialError(f"{type(e).__name__}: {str(e)}")
        if not isinstance(claims, dict):
            raise InvalidCredentialError("claims are not an object")
        return claims
