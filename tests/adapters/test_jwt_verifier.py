"""Tests for the JWT credential verifier."""

import jwt
import pytest

from clinic_roster.adapters.credentials import JWTCredentialVerifier
from clinic_roster.domain.ports import InvalidCredentialError


class TestJWTCredentialVerifier:
    """Tests for JWTCredentialVerifier.verify."""

    def test_valid_token_returns_claims(self, auth_config, token_for):
        claims = JWTCredentialVerifier(auth_config).verify(token_for("admin-1", role="organization"))

        assert claims["id"] == "admin-1"
        assert claims["role"] == "organization"

    def test_expired_token(self, auth_config, token_for):
        with pytest.raises(InvalidCredentialError):
            JWTCredentialVerifier(auth_config).verify(token_for("admin-1", expires_in=-30))

    def test_wrong_secret(self, auth_config, token_for):
        token = token_for("admin-1", secret="some-other-secret-0123456789abcdefgh")

        with pytest.raises(InvalidCredentialError):
            JWTCredentialVerifier(auth_config).verify(token)

    def test_tampered_token(self, auth_config, token_for):
        header, payload, signature = token_for("admin-1").split(".")
        tampered = ".".join([header, payload, signature[:-4] + "AAAA"])

        with pytest.raises(InvalidCredentialError):
            JWTCredentialVerifier(auth_config).verify(tampered)

    def test_malformed_token(self, auth_config):
        with pytest.raises(InvalidCredentialError):
            JWTCredentialVerifier(auth_config).verify("not-a-token")

    def test_empty_token(self, auth_config):
        with pytest.raises(InvalidCredentialError):
            JWTCredentialVerifier(auth_config).verify("")

    def test_algorithm_not_in_allow_list(self, auth_config):
        token = jwt.encode({"id": "admin-1"}, auth_config.jwt_secret.get_secret_value(), algorithm="HS512")

        with pytest.raises(InvalidCredentialError):
            JWTCredentialVerifier(auth_config).verify(token)

    def test_token_without_expiry_is_accepted(self, auth_config):
        token = jwt.encode({"id": "admin-1"}, auth_config.jwt_secret.get_secret_value(), algorithm="HS256")

        assert JWTCredentialVerifier(auth_config).verify(token) == {"id": "admin-1"}
