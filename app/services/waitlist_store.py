import logging
from abc import ABC, abstractmethod
from typing import Optional

from google.cloud.firestore_v1.base_query import FieldFilter
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app.core.config import Settings
from app.core.exceptions import DuplicateEntryError, StoreConfigurationError
from app.models.waitlist_entry import WaitlistEntryRecord
from app.schemas.waitlist import EntryStatus, WaitlistEntry

logger = logging.getLogger(__name__)


def _entry_status(value) -> EntryStatus:
    try:
        return EntryStatus(value)
    except ValueError:
        return EntryStatus.PENDING


class WaitlistStore(ABC):
    """Document store holding waitlist entries keyed by normalized email."""

    name = "abstract"

    @abstractmethod
    def exists(self, email: str) -> bool:
        ...

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[WaitlistEntry]:
        ...

    @abstractmethod
    def add(self, entry: WaitlistEntry) -> None:
        ...

    @abstractmethod
    def count(self) -> int:
        ...


class FirestoreWaitlistStore(WaitlistStore):
    name = "firestore"

    def __init__(self, client, collection: str = "waitlist"):
        self.client = client
        self.collection_name = collection

    def _collection(self):
        return self.client.collection(self.collection_name)

    def _by_email(self, email: str):
        return self._collection().where(filter=FieldFilter("email", "==", email)).limit(1)

    def exists(self, email: str) -> bool:
        return len(list(self._by_email(email).get())) > 0

    def find_by_email(self, email: str) -> Optional[WaitlistEntry]:
        for doc in self._by_email(email).get():
            # Documents may predate this schema or be edited by hand
            data = doc.to_dict() or {}
            fields = {
                "name": str(data.get("name") or ""),
                "email": str(data.get("email") or email),
                "research_interests": str(data.get("researchInterests") or ""),
                "status": _entry_status(data.get("status")),
            }
            if data.get("createdAt"):
                fields["created_at"] = data["createdAt"]
            return WaitlistEntry(**fields)
        return None

    def add(self, entry: WaitlistEntry) -> None:
        self._collection().add(entry.to_document())
        logger.info("Waitlist entry saved to Firestore")

    def count(self) -> int:
        results = self._collection().count().get()
        # One aggregation query -> [[AggregationResult]]
        return int(results[0][0].value) if results and results[0] else 0


class SqlWaitlistStore(WaitlistStore):
    name = "sql"

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @staticmethod
    def _to_entry(record: WaitlistEntryRecord) -> WaitlistEntry:
        return WaitlistEntry(
            name=record.name,
            email=record.email,
            research_interests=record.research_interests,
            created_at=record.created_at,
            status=_entry_status(record.status),
        )

    def exists(self, email: str) -> bool:
        with self.session_factory() as db:
            return db.query(WaitlistEntryRecord.id).filter(WaitlistEntryRecord.email == email).first() is not None

    def find_by_email(self, email: str) -> Optional[WaitlistEntry]:
        with self.session_factory() as db:
            record = db.query(WaitlistEntryRecord).filter(WaitlistEntryRecord.email == email).first()
            return self._to_entry(record) if record else None

    def add(self, entry: WaitlistEntry) -> None:
        with self.session_factory() as db:
            db.add(WaitlistEntryRecord(
                name=entry.name,
                email=entry.email,
                research_interests=entry.research_interests,
                status=entry.status.value,
                created_at=entry.created_at,
            ))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                # Lost the race against a concurrent submission for the same email
                raise DuplicateEntryError("Email already registered", details=entry.email)
        logger.info("Waitlist entry saved to SQL store")

    def count(self) -> int:
        with self.session_factory() as db:
            return int(db.query(func.count(WaitlistEntryRecord.id)).scalar() or 0)


def build_waitlist_store(settings: Settings) -> Optional[WaitlistStore]:
    """Construct the configured store, or None when storage is not available.

    Raises StoreConfigurationError for an unknown backend or unusable credentials.
    """
    backend = (settings.STORE_BACKEND or "none").strip().lower()

    if backend == "none":
        logger.warning("STORE_BACKEND=none: waitlist submissions will be refused")
        return None

    if backend == "firestore":
        from app.core.firebase import create_firestore_client

        client = create_firestore_client(settings)
        if client is None:
            return None
        return FirestoreWaitlistStore(client, settings.WAITLIST_COLLECTION)

    if backend == "sql":
        from app.core.database import create_db_engine, create_session_factory, init_db

        engine = create_db_engine(settings.DATABASE_URL)
        init_db(engine)
        return SqlWaitlistStore(create_session_factory(engine))

    raise StoreConfigurationError(f"Unknown STORE_BACKEND '{settings.STORE_BACKEND}'")
