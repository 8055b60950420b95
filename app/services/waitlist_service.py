import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import (
    BaseAppException,
    DatabaseError,
    DuplicateEntryError,
    ExternalServiceError,
    RegistrationClosedError,
    StoreUnavailableError,
    ValidationError,
)
from app.schemas.waitlist import (
    FORM_FIELDS,
    REQUIRED_FIELD_MESSAGE,
    SubmissionResult,
    WaitlistEntry,
    WaitlistForm,
    field_errors_from,
)
from app.services.email_service import EmailDispatcher
from app.services.waitlist_store import WaitlistStore
from app.utils.audit import audit

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Thank you for joining the waitlist! We'll be in touch soon."
MISSING_FIELDS_MESSAGE = "Please fill out all required fields."
INVALID_FORM_MESSAGE = "Invalid form data. Please check your entries."
DUPLICATE_MESSAGE = "This email is already registered on the waitlist."
UNAVAILABLE_MESSAGE = "The waitlist is temporarily unavailable. Please try again later."
CLOSED_MESSAGE = "Registration is currently closed."
GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


@dataclass
class SubmissionOutcome:
    result: SubmissionResult
    entry: Optional[WaitlistEntry] = None
    error: Optional[BaseAppException] = None


class WaitlistService:
    """Validate -> dedupe -> persist; notification is left to the caller to schedule.

    The store is optional: None means storage is not configured and every
    submission is refused with an "unavailable" error.
    """

    def __init__(
        self,
        store: Optional[WaitlistStore],
        dispatcher: Optional[EmailDispatcher] = None,
        registration_open: bool = True,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.registration_open = registration_open

    def validate(self, raw: Mapping[str, Any]) -> WaitlistForm:
        values: Dict[str, str] = {}
        missing: Dict[str, List[str]] = {}
        for field in FORM_FIELDS:
            value = raw.get(field)
            value = value.strip() if isinstance(value, str) else ""
            if not value:
                missing[field] = [REQUIRED_FIELD_MESSAGE]
            values[field] = value
        if missing:
            raise ValidationError(MISSING_FIELDS_MESSAGE, field_errors=missing)

        try:
            return WaitlistForm(**values)
        except PydanticValidationError as e:
            field_errors = field_errors_from(e)
            logger.info(f"Validation failed: {field_errors}")
            raise ValidationError(INVALID_FORM_MESSAGE, field_errors=field_errors)

    def register(self, raw: Mapping[str, Any]) -> WaitlistEntry:
        """Validate and persist one submission. Raises on every failure path."""
        if not self.registration_open:
            raise RegistrationClosedError(CLOSED_MESSAGE)

        form = self.validate(raw)
        email = form.normalized_email

        if self.store is None:
            raise StoreUnavailableError(UNAVAILABLE_MESSAGE)

        if self.store.exists(email):
            audit("WAITLIST_DUPLICATE", email=email)
            raise DuplicateEntryError(DUPLICATE_MESSAGE, details=email)

        entry = WaitlistEntry.from_form(form)
        self.store.add(entry)
        audit("WAITLIST_JOINED", email=email, store=self.store.name)
        return entry

    def submit(self, raw: Mapping[str, Any]) -> SubmissionOutcome:
        """Run one form submission and describe the result for the browser."""
        try:
            entry = self.register(raw)
        except ValidationError as e:
            return SubmissionOutcome(SubmissionResult.error(e.message, e.field_errors), error=e)
        except DuplicateEntryError as e:
            # Also covers a unique-index violation raised by the store on a race
            return SubmissionOutcome(SubmissionResult.error(DUPLICATE_MESSAGE), error=e)
        except (RegistrationClosedError, StoreUnavailableError) as e:
            logger.warning(f"Waitlist submission refused: {e.message}")
            return SubmissionOutcome(SubmissionResult.error(e.message), error=e)
        except Exception as e:
            logger.exception(f"Error saving waitlist entry: {e}")
            return SubmissionOutcome(
                SubmissionResult.error(GENERIC_ERROR_MESSAGE),
                error=DatabaseError(GENERIC_ERROR_MESSAGE, details=str(e)),
            )
        return SubmissionOutcome(SubmissionResult.success(SUCCESS_MESSAGE), entry=entry)

    def notify(self, entry: WaitlistEntry) -> bool:
        """Send the admin notification; failures are logged, never raised."""
        if self.dispatcher is None:
            return False
        try:
            return self.dispatcher.send_waitlist_notification(entry)
        except ExternalServiceError as e:
            logger.error(f"Failed to send email notification: {e.message} {e.details or ''}".rstrip())
        except Exception as e:
            logger.exception(f"Failed to send email notification: {e}")
        return False

    def count(self) -> int:
        """Number of stored entries; 0 when the store is absent or the read fails."""
        if self.store is None:
            return 0
        try:
            return max(int(self.store.count()), 0)
        except Exception as e:
            logger.warning(f"Failed to read waitlist count: {e}")
            return 0
