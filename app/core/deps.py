from typing import Optional

from fastapi import Depends, Request

from app.core.config import Settings
from app.services.email_service import EmailDispatcher
from app.services.waitlist_service import WaitlistService
from app.services.waitlist_store import WaitlistStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_waitlist_store(request: Request) -> Optional[WaitlistStore]:
    """Store built at startup; None when storage is not configured."""
    return getattr(request.app.state, "waitlist_store", None)


def get_email_dispatcher(request: Request) -> Optional[EmailDispatcher]:
    return getattr(request.app.state, "email_dispatcher", None)


def get_waitlist_service(
    settings: Settings = Depends(get_settings),
    store: Optional[WaitlistStore] = Depends(get_waitlist_store),
    dispatcher: Optional[EmailDispatcher] = Depends(get_email_dispatcher),
) -> WaitlistService:
    return WaitlistService(store, dispatcher, registration_open=settings.REGISTRATION_OPEN)
