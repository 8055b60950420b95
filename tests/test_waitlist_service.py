from unittest.mock import MagicMock

import pytest

from app.core.exceptions import DatabaseError, DuplicateEntryError, EmailDeliveryError, StoreUnavailableError
from app.schemas.waitlist import SubmissionStatus, WaitlistEntry
from app.services.waitlist_service import (
    CLOSED_MESSAGE,
    DUPLICATE_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    INVALID_FORM_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    SUCCESS_MESSAGE,
    UNAVAILABLE_MESSAGE,
    WaitlistService,
)
from app.services.waitlist_store import FirestoreWaitlistStore

from tests.conftest import RecordingDispatcher, UnreachableStore


def test_successful_submission_normalizes_email(sql_store, valid_form):
    service = WaitlistService(sql_store)

    outcome = service.submit(valid_form)

    assert outcome.result.status == SubmissionStatus.SUCCESS
    assert outcome.result.message == SUCCESS_MESSAGE
    assert outcome.result.errors is None
    assert outcome.error is None
    stored = sql_store.find_by_email("jane@example.com")
    assert stored is not None
    assert stored.email == "jane@example.com"
    assert stored.name == "Jane Doe"
    assert stored.status.value == "pending"
    assert outcome.entry.email == "jane@example.com"


def test_duplicate_email_is_rejected_without_second_write(sql_store, valid_form):
    service = WaitlistService(sql_store)
    assert service.submit(valid_form).result.status == SubmissionStatus.SUCCESS

    again = dict(valid_form, email="  JANE@example.COM ")
    outcome = service.submit(again)

    assert outcome.result.status == SubmissionStatus.ERROR
    assert outcome.result.message == DUPLICATE_MESSAGE
    assert isinstance(outcome.error, DuplicateEntryError)
    assert outcome.entry is None
    assert sql_store.count() == 1


@pytest.mark.parametrize("missing", ["name", "email", "researchInterests"])
def test_missing_field_returns_required_error(sql_store, valid_form, missing):
    form = dict(valid_form)
    form[missing] = "   "

    outcome = WaitlistService(sql_store).submit(form)

    assert outcome.result.status == SubmissionStatus.ERROR
    assert outcome.result.message == MISSING_FIELDS_MESSAGE
    assert list(outcome.result.errors) == [missing]
    assert sql_store.count() == 0


@pytest.mark.parametrize(
    "field,value",
    [
        ("name", "J"),
        ("email", "not-an-email"),
        ("email", "jane@"),
        ("researchInterests", "too short"),
        ("researchInterests", "x" * 501),
    ],
)
def test_invalid_field_returns_field_error_and_no_write(field, value, valid_form):
    store = MagicMock()
    form = dict(valid_form)
    form[field] = value

    outcome = WaitlistService(store).submit(form)

    assert outcome.result.status == SubmissionStatus.ERROR
    assert outcome.result.message == INVALID_FORM_MESSAGE
    assert field in outcome.result.errors
    assert outcome.result.errors[field]
    store.exists.assert_not_called()
    store.add.assert_not_called()


def test_interests_length_bounds_are_inclusive(sql_store, valid_form):
    service = WaitlistService(sql_store)

    short = service.submit(dict(valid_form, email="a@example.com", researchInterests="x" * 10))
    long = service.submit(dict(valid_form, email="b@example.com", researchInterests="y" * 500))

    assert short.result.status == SubmissionStatus.SUCCESS
    assert long.result.status == SubmissionStatus.SUCCESS
    assert sql_store.count() == 2


def test_two_character_name_is_accepted(sql_store, valid_form):
    outcome = WaitlistService(sql_store).submit(dict(valid_form, name="Jo"))

    assert outcome.result.status == SubmissionStatus.SUCCESS
    assert outcome.entry.name == "Jo"
    assert sql_store.count() == 1


def test_existing_document_with_other_status_is_duplicate(valid_form):
    client = MagicMock()
    collection = client.collection.return_value
    doc = MagicMock()
    doc.to_dict.return_value = {"email": "jane@example.com", "name": None, "status": "approved"}
    collection.where.return_value.limit.return_value.get.return_value = [doc]

    outcome = WaitlistService(FirestoreWaitlistStore(client)).submit(valid_form)

    assert outcome.result.message == DUPLICATE_MESSAGE
    assert isinstance(outcome.error, DuplicateEntryError)
    collection.add.assert_not_called()


def test_missing_store_reports_unavailable(valid_form):
    outcome = WaitlistService(None).submit(valid_form)

    assert outcome.result.status == SubmissionStatus.ERROR
    assert outcome.result.message == UNAVAILABLE_MESSAGE
    assert isinstance(outcome.error, StoreUnavailableError)


def test_store_failure_returns_generic_error(valid_form):
    outcome = WaitlistService(UnreachableStore()).submit(valid_form)

    assert outcome.result.status == SubmissionStatus.ERROR
    assert outcome.result.message == GENERIC_ERROR_MESSAGE
    assert isinstance(outcome.error, DatabaseError)


def test_closed_registration_has_no_side_effects(valid_form):
    store = MagicMock()

    outcome = WaitlistService(store, registration_open=False).submit(valid_form)

    assert outcome.result.message == CLOSED_MESSAGE
    store.add.assert_not_called()


def test_notify_swallows_delivery_errors(settings):
    dispatcher = RecordingDispatcher(settings, fail_with=EmailDeliveryError("Resend API error", details="boom"))
    service = WaitlistService(None, dispatcher)
    entry = WaitlistEntry(name="Jane Doe", email="jane@example.com", research_interests="Computational biology")

    assert service.notify(entry) is False
    assert dispatcher.sent == [entry]


def test_notify_without_dispatcher_is_noop():
    entry = WaitlistEntry(name="Jane Doe", email="jane@example.com", research_interests="Computational biology")
    assert WaitlistService(None).notify(entry) is False


def test_count_reads_store(sql_store, valid_form):
    service = WaitlistService(sql_store)
    service.submit(valid_form)
    assert service.count() == 1


def test_count_is_zero_when_store_unreachable():
    assert WaitlistService(UnreachableStore()).count() == 0


def test_count_is_zero_without_store():
    assert WaitlistService(None).count() == 0
