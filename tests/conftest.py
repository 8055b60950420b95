from typing import List, Optional

import pytest

from app.core.config import Settings
from app.core.database import create_db_engine, create_session_factory, init_db
from app.schemas.waitlist import WaitlistEntry
from app.services.email_service import EmailDispatcher
from app.services.waitlist_store import SqlWaitlistStore, WaitlistStore


class UnreachableStore(WaitlistStore):
    """Store whose backend is down: every call raises."""

    name = "unreachable"

    def exists(self, email: str) -> bool:
        raise ConnectionError("store unreachable")

    def find_by_email(self, email: str) -> Optional[WaitlistEntry]:
        raise ConnectionError("store unreachable")

    def add(self, entry: WaitlistEntry) -> None:
        raise ConnectionError("store unreachable")

    def count(self) -> int:
        raise ConnectionError("store unreachable")


class RecordingDispatcher(EmailDispatcher):
    """Dispatcher that records entries instead of sending, optionally failing."""

    def __init__(self, settings: Settings, fail_with: Optional[Exception] = None):
        super().__init__(settings)
        self.sent: List[WaitlistEntry] = []
        self.fail_with = fail_with

    def send_waitlist_notification(self, entry: WaitlistEntry) -> bool:
        self.sent.append(entry)
        if self.fail_with is not None:
            raise self.fail_with
        return True


def make_settings(**overrides) -> Settings:
    values = {
        "STORE_BACKEND": "sql",
        "DATABASE_URL": "sqlite://",
        "EMAIL_PROVIDER": "none",
        "ADMIN_EMAIL": "",
        "FROM_EMAIL": "",
        "RESEND_API_KEY": "",
        "SMTP_HOST": "",
        "SMTP_PORT": "",
        "SMTP_USER": "",
        "SMTP_PASSWORD": "",
        "FIREBASE_SERVICE_ACCOUNT_KEY": "",
        "FIREBASE_PROJECT_ID": "",
        "REGISTRATION_OPEN": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def sql_store() -> SqlWaitlistStore:
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield SqlWaitlistStore(create_session_factory(engine))
    engine.dispose()


@pytest.fixture
def valid_form() -> dict:
    return {
        "name": "Jane Doe",
        "email": "Jane@Example.com",
        "researchInterests": "Protein folding and computational biology",
    }
