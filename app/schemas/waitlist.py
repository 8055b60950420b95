from pydantic import BaseModel, EmailStr, Field, ValidationError
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import enum


class EntryStatus(str, enum.Enum):
    PENDING = "pending"


class SubmissionStatus(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"
    IDLE = "idle"


# Wire names of the form fields, in display order
FORM_FIELDS = ("name", "email", "researchInterests")

NAME_MIN_LENGTH = 2
INTERESTS_MIN_LENGTH = 10
INTERESTS_MAX_LENGTH = 500

REQUIRED_FIELD_MESSAGE = "This field is required."

_FIELD_MESSAGES = {
    ("name", "string_too_short"): f"Name must be at least {NAME_MIN_LENGTH} characters.",
    ("email", "value_error"): "Please enter a valid email address.",
    ("researchInterests", "string_too_short"): (
        f"Please tell us a bit more about your research interests "
        f"(at least {INTERESTS_MIN_LENGTH} characters)."
    ),
    ("researchInterests", "string_too_long"): (
        f"Research interests must be {INTERESTS_MAX_LENGTH} characters or fewer."
    ),
}


class WaitlistForm(BaseModel):
    """Raw waitlist form as posted by the landing page."""
    name: str = Field(..., min_length=NAME_MIN_LENGTH)
    email: EmailStr
    research_interests: str = Field(
        ...,
        alias="researchInterests",
        min_length=INTERESTS_MIN_LENGTH,
        max_length=INTERESTS_MAX_LENGTH,
    )

    class Config:
        str_strip_whitespace = True
        populate_by_name = True

    @property
    def normalized_email(self) -> str:
        return self.email.strip().lower()


def field_errors_from(exc: ValidationError) -> Dict[str, List[str]]:
    """Collapse a pydantic ValidationError into {wire field: [messages]}."""
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err.get("loc") else "__all__"
        if field == "research_interests":
            field = "researchInterests"
        message = _FIELD_MESSAGES.get((field, err.get("type")))
        if message is None and field == "email":
            message = _FIELD_MESSAGES[("email", "value_error")]
        errors.setdefault(field, []).append(message or err.get("msg", "Invalid value."))
    return errors


class WaitlistEntry(BaseModel):
    """One person's registration record. Never mutated once written."""
    name: str
    email: str
    research_interests: str = Field(..., alias="researchInterests")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="createdAt")
    status: EntryStatus = EntryStatus.PENDING

    class Config:
        frozen = True
        populate_by_name = True

    @classmethod
    def from_form(cls, form: WaitlistForm) -> "WaitlistEntry":
        return cls(
            name=form.name,
            email=form.normalized_email,
            research_interests=form.research_interests,
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "researchInterests": self.research_interests,
            "createdAt": self.created_at,
            "status": self.status.value,
        }


class SubmissionResult(BaseModel):
    message: str
    status: SubmissionStatus
    errors: Optional[Dict[str, List[str]]] = None

    @classmethod
    def idle(cls) -> "SubmissionResult":
        return cls(message="", status=SubmissionStatus.IDLE)

    @classmethod
    def success(cls, message: str) -> "SubmissionResult":
        return cls(message=message, status=SubmissionStatus.SUCCESS)

    @classmethod
    def error(cls, message: str, errors: Optional[Dict[str, List[str]]] = None) -> "SubmissionResult":
        return cls(message=message, status=SubmissionStatus.ERROR, errors=errors or None)


class WaitlistCount(BaseModel):
    count: int


class StatusResponse(BaseModel):
    registration_open: bool
    store_available: bool
    email_provider: str
