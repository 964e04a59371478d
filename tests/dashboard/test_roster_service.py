"""Tests for the organization roster service."""

from unittest.mock import Mock, patch

import pytest
from bson import ObjectId

from clinic_roster.domain.ports import StorageUnavailableError
from clinic_roster.dashboard.services.roster_service import (
    FAILED_TO_LOAD,
    RosterService,
)


@pytest.fixture
def service(store, guard):
    return RosterService(store, guard)


def doctors_by_email(result):
    return {doctor.email: doctor for doctor in result.value.doctors}


class TestRosterAssembly:
    """Tests for the roster snapshot returned to the organization admin."""

    def test_lists_only_the_organizations_doctors(self, service, roster, bearer_for):
        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        assert result.is_success()
        assert [d.id for d in result.value.doctors] == [
            roster["doctor_a"], roster["doctor_b"], roster["doctor_c"]
        ]

    def test_patients_created_by_identity_or_email(self, service, roster, bearer_for):
        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        doctor_a = doctors_by_email(result)["a@clinic.test"]
        assert [p.id for p in doctor_a.patients] == [roster["p1"], roster["p2"]]

    def test_diagnoses_are_attributed_to_their_author(self, service, roster, bearer_for):
        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))
        doctors = doctors_by_email(result)

        a_diagnoses = doctors["a@clinic.test"].diagnoses
        assert a_diagnoses[0].id == "diag-a1"
        assert a_diagnoses[0].patient_id == roster["p1"]
        assert a_diagnoses[0].patient_name == "Patient One"
        assert a_diagnoses[0].notes == "stable"
        assert a_diagnoses[1].patient_id == roster["p2"]
        assert a_diagnoses[1].disease == "Asthma"
        assert len(a_diagnoses) == 2

        b_diagnoses = doctors["b@clinic.test"].diagnoses
        assert [d.id for d in b_diagnoses] == ["diag-b3"]

    def test_diagnosis_without_id_gets_one(self, service, roster, bearer_for):
        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        generated = doctors_by_email(result)["a@clinic.test"].diagnoses[1].id
        assert generated
        assert ObjectId.is_valid(generated)

    def test_generated_diagnosis_ids_differ_across_reads(self, service, roster, bearer_for):
        header = bearer_for(roster["admin_id"])

        first = service.list_doctors_with_records(roster["org_id"], header)
        second = service.list_doctors_with_records(roster["org_id"], header)

        first_id = doctors_by_email(first)["a@clinic.test"].diagnoses[1].id
        second_id = doctors_by_email(second)["a@clinic.test"].diagnoses[1].id
        assert first_id != second_id

    def test_doctor_without_records(self, service, roster, bearer_for):
        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        doctor_c = doctors_by_email(result)["c@clinic.test"]
        assert doctor_c.patients == []
        assert doctor_c.diagnoses == []
        assert doctor_c.profile["name"] == "Dr. C"

    def test_patient_fields_are_normalized(self, service, roster, bearer_for):
        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))
        doctors = doctors_by_email(result)

        p1, p2 = doctors["a@clinic.test"].patients
        (p3,) = doctors["b@clinic.test"].patients
        assert p1.age == 41
        assert p2.age == 7
        assert p3.age is None
        assert p2.icd11 == "CA40, CA23"
        assert p1.created_at is not None

    def test_native_key_created_by(self, store, service, roster, bearer_for):
        doctor_c = ObjectId(roster["doctor_c"])
        patient_id = store.add("patients", {
            "name": "Patient Four",
            "createdBy": doctor_c,
            "diagnoses": [{"id": "diag-c4", "createdBy": doctor_c, "disease": "Fracture"}],
        })

        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        doctor = doctors_by_email(result)["c@clinic.test"]
        assert [p.id for p in doctor.patients] == [patient_id]
        assert [d.id for d in doctor.diagnoses] == ["diag-c4"]

    def test_non_string_patient_name_is_tolerated(self, store, service, roster, bearer_for):
        store.add("patients", {
            "name": 12345,
            "createdBy": roster["doctor_c"],
            "diagnoses": [{"id": "diag-c5", "createdBy": roster["doctor_c"], "disease": "Sprain"}],
        })

        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        assert result.is_success()
        doctor = doctors_by_email(result)["c@clinic.test"]
        assert doctor.patients[0].name == "12345"
        assert doctor.diagnoses[0].patient_name == "12345"

    def test_email_is_matched_in_its_stored_form(self, store, service, roster, bearer_for):
        doctor_id = store.add("users", {
            "email": "d@clinic.test ", "role": "doctor",
            "profile": {"organizationId": roster["org_id"], "name": "Dr. D"},
        })
        patient_id = store.add("patients", {
            "name": "Patient Five",
            "createdBy": "d@clinic.test ",
            "diagnoses": [{"id": "diag-d5", "createdBy": "d@clinic.test ", "disease": "Gout"}],
        })

        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        doctor = next(d for d in result.value.doctors if d.id == doctor_id)
        assert doctor.email == "d@clinic.test "
        assert [p.id for p in doctor.patients] == [patient_id]
        assert [d.id for d in doctor.diagnoses] == ["diag-d5"]

    def test_shared_email_disables_email_attribution(self, store, service, roster, bearer_for):
        store.add("users", {
            "email": "A@Clinic.test", "role": "doctor",
            "profile": {"organizationId": roster["org_id"], "name": "Dr. A Duplicate"},
        })

        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        doctor_a = next(d for d in result.value.doctors if d.id == roster["doctor_a"])
        duplicate = result.value.doctors[-1]
        assert [p.id for p in doctor_a.patients] == [roster["p1"]]
        assert [d.id for d in doctor_a.diagnoses] == ["diag-a1"]
        assert duplicate.patients == []
        assert duplicate.diagnoses == []

    def test_role_is_checked_on_returned_documents(self, store, service, roster, bearer_for):
        original_find = store.find

        def find(collection, query=None):
            documents = original_find(collection, query)
            if collection == "users":
                documents.append({"_id": "stray", "role": "organization", "profile": {}})
            return documents

        store.find = find
        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        assert "stray" not in [d.id for d in result.value.doctors]

    def test_fan_out_matches_sequential_assembly(self, store, guard, roster, bearer_for):
        header = bearer_for(roster["admin_id"])
        sequential = RosterService(store, guard).list_doctors_with_records(roster["org_id"], header)
        parallel = RosterService(store, guard, fanout_workers=4).list_doctors_with_records(roster["org_id"], header)

        def shape(result):
            return [
                (d.id, [p.id for p in d.patients], [x.patient_id for x in d.diagnoses])
                for d in result.value.doctors
            ]

        assert shape(parallel) == shape(sequential)

    def test_empty_organization(self, store, service, bearer_for):
        admin = ObjectId()
        org_id = store.add("organizations", {"name": "Empty Clinic", "admin": admin})

        result = service.list_doctors_with_records(org_id, bearer_for(admin))

        assert result.is_success()
        assert result.value.doctors == []


class TestRosterFailures:
    """Tests for failure kinds reported by the roster service."""

    def test_unavailable_store(self, store, service, roster, bearer_for):
        store.available = False

        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        assert result.is_failure()
        assert result.error_type == "Unavailable"
        assert store.calls == []

    def test_malformed_organization_id(self, service, roster, bearer_for):
        result = service.list_doctors_with_records("not-an-id", bearer_for(roster["admin_id"]))

        assert result.error_type == "NotFound"
        assert result.error == "organization not found"

    def test_unknown_organization_id(self, service, roster, bearer_for):
        result = service.list_doctors_with_records(str(ObjectId()), bearer_for(roster["admin_id"]))

        assert result.error_type == "NotFound"

    def test_not_found_precedes_authentication(self, service, roster):
        result = service.list_doctors_with_records(str(ObjectId()), None)

        assert result.error_type == "NotFound"

    def test_missing_token_reads_no_records(self, store, service, roster):
        result = service.list_doctors_with_records(roster["org_id"], None)

        assert result.error_type == "Unauthenticated"
        assert result.error == "missing token"
        assert ("find", "users") not in store.calls
        assert ("find", "patients") not in store.calls

    def test_invalid_token(self, service, roster):
        result = service.list_doctors_with_records(roster["org_id"], "Bearer not.a.jwt")

        assert result.error_type == "Unauthenticated"
        assert result.error == "invalid token"

    def test_token_without_identity(self, service, roster, bearer_for):
        result = service.list_doctors_with_records(roster["org_id"], bearer_for(None, sub="x"))

        assert result.error_type == "Unauthenticated"
        assert result.error == "invalid requester"

    def test_doctor_of_the_organization_is_forbidden(self, store, service, roster, bearer_for):
        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["doctor_a"]))

        assert result.error_type == "Forbidden"
        assert result.error == "forbidden"
        assert ("find", "patients") not in store.calls

    def test_admin_of_another_organization_is_forbidden(self, store, service, roster, bearer_for):
        other_admin = store.find_one("organizations", {"_id": ObjectId(roster["other_org_id"])})["admin"]

        result = service.list_doctors_with_records(roster["org_id"], bearer_for(other_admin))

        assert result.error_type == "Forbidden"

    def test_store_failure_while_loading_patients(self, store, service, roster, bearer_for):
        store.failing_operations.add("find:patients")

        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        assert result.error_type == "InternalFault"
        assert result.error == FAILED_TO_LOAD
        assert result.value is None

    def test_store_unreachable_while_resolving(self, store, service, roster, bearer_for):
        store.find_one = Mock(side_effect=StorageUnavailableError("gone", operation="find_one"))

        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        assert result.error_type == "Unavailable"

    def test_store_failure_while_resolving(self, store, service, roster, bearer_for):
        store.failing_operations.add("find_one")

        result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        assert result.error_type == "InternalFault"

    def test_unexpected_error_is_internal_fault(self, service, roster, bearer_for):
        with patch.object(RosterService, "doctor_entry", side_effect=RuntimeError("boom")):
            result = service.list_doctors_with_records(roster["org_id"], bearer_for(roster["admin_id"]))

        assert result.error_type == "InternalFault"
        assert result.error == FAILED_TO_LOAD
