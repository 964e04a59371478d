"""Shared fixtures: an in-memory document store and a seeded roster.

InMemoryDocumentStore implements DocumentStorePort over plain lists. It
keeps native ObjectId keys internally and returns canonicalized copies,
as the MongoDB adapter does.
"""

import copy
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

import jwt
import pytest
from bson import ObjectId
from bson.errors import InvalidId
from pydantic import SecretStr

from clinic_roster.adapters.credentials import JWTCredentialVerifier
from clinic_roster.adapters.storage.mongodb_adapter import to_plain
from clinic_roster.domain.ports import (
    DocumentStorePort,
    InvalidIdentifierError,
    StorageError,
    StorageUnavailableError,
)
from clinic_roster.domain.services.authorization_guard import AuthorizationGuard
from clinic_roster.infrastructure.config_manager import AuthConfig

TEST_SECRET = "roster-test-secret-0123456789abcdef"


def _lookup(document: dict, path: str) -> tuple[bool, Any]:
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return False, None
        value = value[part]
    return True, value


def _matches(document: dict, query: dict) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(_matches(document, clause) for clause in condition):
                return False
            continue
        found, value = _lookup(document, key)
        if isinstance(condition, dict) and "$in" in condition:
            if not found or value not in condition["$in"]:
                return False
        elif not found or value != condition:
            return False
    return True


class InMemoryDocumentStore(DocumentStorePort):
    """DocumentStorePort over in-memory lists, with failure switches."""

    db_type = "memory"

    def __init__(self, available: bool = True):
        self.collections: dict[str, list[dict]] = defaultdict(list)
        self.available = available
        self.failing_operations: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if not self.available:
            raise StorageUnavailableError("store offline", operation=operation)
        if operation in self.failing_operations or f"{operation}:{collection}" in self.failing_operations:
            raise StorageError(f"{operation} failed", operation=operation)

    def add(self, collection: str, document: dict) -> str:
        row = copy.deepcopy(document)
        row.setdefault("_id", ObjectId())
        self.collections[collection].append(row)
        return str(row["_id"])

    def is_available(self) -> bool:
        return self.available

    def find(self, collection: str, query: Optional[dict] = None) -> list[dict]:
        self._check("find", collection)
        return [
            to_plain(copy.deepcopy(doc))
            for doc in self.collections[collection]
            if _matches(doc, query or {})
        ]

    def find_one(self, collection: str, query: dict) -> Optional[dict]:
        self._check("find_one", collection)
        for doc in self.collections[collection]:
            if _matches(doc, query):
                return to_plain(copy.deepcopy(doc))
        return None

    def count(self, collection: str, query: Optional[dict] = None) -> int:
        self._check("count", collection)
        return sum(1 for doc in self.collections[collection] if _matches(doc, query or {}))

    def insert_many(self, collection: str, documents: Iterable[dict]) -> list[str]:
        self._check("insert_many", collection)
        return [self.add(collection, doc) for doc in documents]

    def parse_key(self, value: str) -> ObjectId:
        if not isinstance(value, str):
            raise InvalidIdentifierError("Invalid identifier", value=value)
        try:
            return ObjectId(value)
        except InvalidId:
            raise InvalidIdentifierError("Invalid identifier", value=value)

    def generate_key(self) -> str:
        return str(ObjectId())


def make_token(requester_id: Any, secret: str = TEST_SECRET, expires_in: int = 3600, **claims) -> str:
    payload = {"exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in), **claims}
    if requester_id is not None:
        payload["id"] = str(requester_id)
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(requester_id: Any, **kwargs) -> str:
    return f"Bearer {make_token(requester_id, **kwargs)}"


@pytest.fixture
def auth_config():
    return AuthConfig(jwt_secret=SecretStr(TEST_SECRET))


@pytest.fixture
def guard(auth_config):
    return AuthorizationGuard(JWTCredentialVerifier(auth_config))


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def roster(store):
    """Seed one organization with three doctors and cross-attributed records.

    - doctor A created patient P1 (by id) and P2 (by email)
    - doctor B created patient P3
    - doctor C created nothing
    - P1 carries a diagnosis by A and one by B
    - P3 carries a diagnosis by A and one by B
    - an organization-role user, and a doctor of another organization,
      must never appear
    """
    admin_id = ObjectId()
    created = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)

    org_id = store.add("organizations", {
        "name": "Community Clinic A",
        "slug": "community-clinic-a",
        "admin": admin_id,
        "createdAt": created,
    })
    other_org_id = store.add("organizations", {"name": "General Hospital B", "admin": ObjectId()})

    store.add("users", {
        "_id": admin_id, "email": "admin@clinic.test", "role": "organization",
        "profile": {"organizationId": org_id, "name": "Clinic Admin"},
    })
    doctor_a = store.add("users", {
        "email": "a@clinic.test", "role": "doctor",
        "profile": {"organizationId": org_id, "name": "Dr. A"},
    })
    doctor_b = store.add("users", {
        "email": "b@clinic.test", "role": "doctor",
        "profile": {"organizationId": org_id, "name": "Dr. B"},
    })
    doctor_c = store.add("users", {
        "email": "c@clinic.test", "role": "doctor",
        "profile": {"organizationId": org_id, "name": "Dr. C"},
    })
    outsider = store.add("users", {
        "email": "x@elsewhere.test", "role": "doctor",
        "profile": {"organizationId": other_org_id, "name": "Dr. X"},
    })

    p1 = store.add("patients", {
        "name": "Patient One", "age": 41, "icd11": "BA00", "disease": "Hypertension",
        "createdBy": doctor_a, "createdAt": created,
        "diagnoses": [
            {"id": "diag-a1", "createdBy": doctor_a, "icd11": "BA00", "disease": "Hypertension",
             "notes": "stable", "createdAt": created},
            {"id": "diag-b1", "createdBy": doctor_b, "icd11": "5A11", "disease": "Diabetes"},
        ],
    })
    p2 = store.add("patients", {
        "name": "Patient Two", "age": "7", "icd11": ["CA40", "CA23"], "disease": "Asthma",
        "createdBy": "a@clinic.test", "createdAt": created,
        "diagnoses": [
            {"createdBy": "a@clinic.test", "icd11": "CA23", "disease": "Asthma"},
        ],
    })
    p3 = store.add("patients", {
        "name": "Patient Three", "age": None, "createdBy": doctor_b,
        "diagnoses": [
            {"id": "diag-a3", "createdBy": doctor_a, "icd11": "8A80", "disease": "Migraine"},
            {"id": "diag-b3", "createdBy": "b@clinic.test", "icd11": "8A81", "disease": "Headache"},
        ],
    })
    store.add("patients", {"name": "Outsider Patient", "createdBy": outsider, "diagnoses": []})

    return {
        "org_id": org_id,
        "other_org_id": other_org_id,
        "admin_id": str(admin_id),
        "doctor_a": doctor_a,
        "doctor_b": doctor_b,
        "doctor_c": doctor_c,
        "outsider": outsider,
        "p1": p1,
        "p2": p2,
        "p3": p3,
    }


@pytest.fixture
def bearer_for():
    """Build an ``Authorization`` header value for a requester identity."""
    return bearer


@pytest.fixture
def token_for():
    """Build a raw signed token for a requester identity."""
    return make_token
