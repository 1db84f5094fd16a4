"""
Tests for account validation and persistence.
"""
from datetime import time
import pytest

from clinic.auth.exceptions import DuplicateEmailException
from clinic.auth.models import Account, Doctor, Receptionist
from clinic.auth.schemas import AccountUpdate
from clinic.auth.service import (
    get_account_by_email,
    insert_account,
    update_account,
    update_own_account,
    validate_doctor,
    validate_receptionist,
)
from clinic.core.validator import Validator
from clinic.exceptions import EditConflictException, FailedValidationException, RecordNotFoundException


def make_doctor(**overrides):
    fields = dict(
        name="A",
        email="a@x.com",
        contact=9998887776,
        specialization="Cardio",
        shift_start=time(9, 0),
        shift_end=time(17, 0),
    )
    fields.update(overrides)
    doctor = Doctor(**fields)
    doctor.set_password("longenough1")
    return doctor


def make_receptionist(**overrides):
    fields = dict(
        name="Rita Desk",
        email="rita@example.com",
        shift_start=time(8, 0),
        shift_end=time(16, 0),
    )
    fields.update(overrides)
    receptionist = Receptionist(**fields)
    receptionist.set_password("frontdesk99")
    return receptionist


def errors_for(validate, account):
    v = Validator()
    validate(v, account)
    return v.errors


def test_valid_doctor_has_no_errors():
    assert errors_for(validate_doctor, make_doctor()) == {}


@pytest.mark.parametrize("specialization, valid", [("Ent", False), ("Cardio", True), ("Skin", True)])
def test_doctor_specialization_minimum_length(specialization, valid):
    errors = errors_for(validate_doctor, make_doctor(specialization=specialization))
    assert ("specialization" not in errors) == valid


@pytest.mark.parametrize("contact, valid", [(999888777, False), (9998887776, True)])
def test_contact_needs_ten_digits(contact, valid):
    errors = errors_for(validate_doctor, make_doctor(contact=contact))
    assert ("contact" not in errors) == valid


def test_doctor_requires_contact_receptionist_does_not():
    assert "contact" in errors_for(validate_doctor, make_doctor(contact=None))
    assert errors_for(validate_receptionist, make_receptionist()) == {}


def test_shift_must_end_after_start():
    errors = errors_for(validate_doctor, make_doctor(shift_start=time(17, 0), shift_end=time(9, 0)))
    assert errors == {"shift": "shift timing should be valid"}


def test_errors_are_collected_for_every_field():
    """
    Test that validation reports all failing fields at once.
    """
    doctor = make_doctor(name="", email="not-an-email", specialization="X", contact=123)
    errors = errors_for(validate_doctor, doctor)
    assert set(errors) == {"name", "email", "specialization", "contact"}


def test_name_limited_to_500_bytes():
    assert "name" in errors_for(validate_doctor, make_doctor(name="é" * 251))
    assert "name" not in errors_for(validate_doctor, make_doctor(name="n" * 500))


def test_short_password_is_reported():
    doctor = make_doctor()
    doctor.set_password("short")
    assert "password" in errors_for(validate_doctor, doctor)


def test_missing_password_hash_is_a_programming_error():
    """
    Test that validating an account without a hash fails loudly.
    """
    doctor = Doctor(
        name="A",
        email="a@x.com",
        contact=9998887776,
        specialization="Cardio",
        shift_start=time(9, 0),
        shift_end=time(17, 0),
    )
    with pytest.raises(RuntimeError):
        validate_doctor(Validator(), doctor)


def test_insert_assigns_id_and_version(db):
    doctor = insert_account(db, make_doctor())
    assert doctor.id >= 1
    assert doctor.version == 1
    assert doctor.created_at is not None


def test_duplicate_email_across_roles(db):
    """
    Test that doctors and receptionists share one email space.
    """
    insert_account(db, make_doctor(email="shared@example.com"))

    with pytest.raises(DuplicateEmailException):
        insert_account(db, make_receptionist(email="shared@example.com"))

    assert db.query(Account).count() == 1


def test_get_by_email_returns_role_class(db):
    insert_account(db, make_doctor())
    insert_account(db, make_receptionist())

    assert isinstance(get_account_by_email(db, "a@x.com"), Doctor)
    assert isinstance(get_account_by_email(db, "rita@example.com"), Receptionist)
    with pytest.raises(RecordNotFoundException):
        get_account_by_email(db, "nobody@example.com")


def test_update_bumps_version(db):
    insert_account(db, make_doctor())

    account = update_own_account(db, "a@x.com", AccountUpdate(name="Dr. A", version=1))
    assert account.name == "Dr. A"
    assert account.version == 2


def test_update_with_stale_version_conflicts(db):
    insert_account(db, make_doctor())
    update_own_account(db, "a@x.com", AccountUpdate(name="Dr. A"))

    with pytest.raises(EditConflictException):
        update_own_account(db, "a@x.com", AccountUpdate(name="Dr. B", version=1))

    assert get_account_by_email(db, "a@x.com").name == "Dr. A"


def test_update_with_invalid_merge_is_rejected(db):
    insert_account(db, make_doctor())

    with pytest.raises(FailedValidationException) as exc_info:
        update_own_account(db, "a@x.com", AccountUpdate(specialization="X"))

    assert "specialization" in exc_info.value.errors
    assert get_account_by_email(db, "a@x.com").specialization == "Cardio"


def test_concurrent_account_updates_conflict(session_factory):
    """
    Test that two sessions writing from the same version cannot both win.
    """
    setup = session_factory()
    insert_account(setup, make_doctor())
    setup.close()

    first, second = session_factory(), session_factory()
    try:
        a = get_account_by_email(first, "a@x.com")
        b = get_account_by_email(second, "a@x.com")

        a.name = "First"
        update_account(first, a)

        b.name = "Second"
        with pytest.raises(EditConflictException):
            update_account(second, b)
    finally:
        first.close()
        second.close()

    check = session_factory()
    stored = get_account_by_email(check, "a@x.com")
    assert (stored.name, stored.version) == ("First", 2)
    check.close()


@pytest.mark.parametrize("contact", [-9998887776, 10**20])
def test_contact_must_be_positive_and_fit_storage(contact):
    assert "contact" in errors_for(validate_doctor, make_doctor(contact=contact))
    assert "contact" in errors_for(validate_receptionist, make_receptionist(contact=contact))
