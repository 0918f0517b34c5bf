"""Unit tests for auth/store.py -- StaffStore repository methods.

Covers:
- sequential IDs that are never reused after a delete
- username/email uniqueness enforced by the schema
- new accounts always start unlocked with zero failed attempts
- persist_attempt_state() / unlock() round trips
- update_staff() field whitelist and role coercion
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import Role, StaffAccount


def _account(username: str, **overrides) -> StaffAccount:
    fields = dict(
        username=username,
        hashed_password="$2b$04$notarealhash",
        role=Role.INSTRUCTOR,
        full_name="Carlos Souza",
        email=f"{username}@academia.com",
        phone="11988887777",
        birth_date="1988-05-20",
        job_title="Instrutor",
    )
    fields.update(overrides)
    return StaffAccount(**fields)


class TestCreateAndRead:
    def test_create_assigns_sequential_ids(self, staff_store):
        first = staff_store.create_staff(_account("carlos"))
        second = staff_store.create_staff(_account("bruna"))
        assert second.id == first.id + 1

    def test_deleted_id_is_not_reused(self, staff_store):
        first = staff_store.create_staff(_account("carlos"))
        second = staff_store.create_staff(_account("bruna"))
        assert staff_store.delete_staff(second.id) is True
        third = staff_store.create_staff(_account("pedro"))
        assert third.id == second.id + 1
        assert staff_store.get_by_id(first.id) is not None

    def test_new_account_starts_unlocked(self, staff_store):
        created = staff_store.create_staff(_account("carlos", failed_attempts=2, locked=True))
        assert created.failed_attempts == 0
        assert created.locked is False

    def test_hire_date_defaults_to_today(self, staff_store):
        created = staff_store.create_staff(_account("carlos"))
        assert created.hire_date is not None
        assert len(created.hire_date) == 10

    def test_lookup_by_username_and_id(self, staff_store):
        created = staff_store.create_staff(_account("carlos"))
        by_name = staff_store.get_by_username("carlos")
        assert by_name == staff_store.get_by_id(created.id)
        assert by_name.role is Role.INSTRUCTOR
        assert staff_store.get_by_username("nobody") is None
        assert staff_store.get_by_id(999) is None

    def test_duplicate_username_raises(self, staff_store):
        staff_store.create_staff(_account("carlos"))
        with pytest.raises(IntegrityError):
            staff_store.create_staff(_account("carlos", email="other@academia.com"))

    def test_duplicate_email_raises(self, staff_store):
        staff_store.create_staff(_account("carlos"))
        with pytest.raises(IntegrityError):
            staff_store.create_staff(_account("bruna", email="carlos@academia.com"))

    def test_has_users_and_email_exists(self, staff_store):
        assert staff_store.has_users() is False
        staff_store.create_staff(_account("carlos"))
        assert staff_store.has_users() is True
        assert staff_store.email_exists("carlos@academia.com") is True
        assert staff_store.email_exists("nobody@academia.com") is False

    def test_list_staff_in_id_order(self, staff_store):
        staff_store.create_staff(_account("carlos"))
        staff_store.create_staff(_account("bruna"))
        assert [a.username for a in staff_store.list_staff()] == ["carlos", "bruna"]


class TestRoleIsMandatory:
    def test_missing_role_is_a_type_error(self):
        with pytest.raises(TypeError):
            StaffAccount(username="x", hashed_password="h")  # type: ignore[call-arg]

    def test_unknown_role_is_rejected(self):
        with pytest.raises(ValueError):
            _account("carlos", role="ROOT")

    def test_wire_string_is_coerced(self):
        assert _account("carlos", role="GERENTE").role is Role.MANAGER


class TestAttemptState:
    def test_persist_attempt_state(self, staff_store):
        staff_store.create_staff(_account("carlos"))
        staff_store.persist_attempt_state("carlos", 2, False)
        stored = staff_store.get_by_username("carlos")
        assert (stored.failed_attempts, stored.locked) == (2, False)

        staff_store.persist_attempt_state("carlos", 0, True)
        stored = staff_store.get_by_username("carlos")
        assert (stored.failed_attempts, stored.locked) == (0, True)

    def test_unlock_clears_both_fields(self, staff_store):
        created = staff_store.create_staff(_account("carlos"))
        staff_store.persist_attempt_state("carlos", 1, True)
        assert staff_store.unlock(created.id) is True
        stored = staff_store.get_by_id(created.id)
        assert (stored.failed_attempts, stored.locked) == (0, False)


class TestUpdateStaff:
    def test_update_role_and_name(self, staff_store):
        created = staff_store.create_staff(_account("carlos"))
        assert staff_store.update_staff(created.id, role=Role.MANAGER, full_name="Carlos Lima") is True
        stored = staff_store.get_by_id(created.id)
        assert stored.role is Role.MANAGER
        assert stored.full_name == "Carlos Lima"

    def test_attempt_fields_are_not_updatable(self, staff_store):
        created = staff_store.create_staff(_account("carlos"))
        with pytest.raises(ValueError):
            staff_store.update_staff(created.id, locked=False)

    def test_update_unknown_id(self, staff_store):
        assert staff_store.update_staff(999, full_name="Ghost") is False
