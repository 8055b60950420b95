import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.core.config import Settings
from app.core.deps import get_email_dispatcher, get_settings, get_waitlist_service, get_waitlist_store
from app.core.exceptions import (
    BaseAppException,
    DuplicateEntryError,
    RegistrationClosedError,
    StoreUnavailableError,
    ValidationError,
)
from app.schemas.waitlist import FORM_FIELDS, StatusResponse, SubmissionResult, WaitlistCount
from app.services.email_service import EmailDispatcher
from app.services.waitlist_service import WaitlistService
from app.services.waitlist_store import WaitlistStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/public", tags=["public"])

_ERROR_STATUS = {
    ValidationError: 400,
    RegistrationClosedError: 403,
    DuplicateEntryError: 409,
    StoreUnavailableError: 503,
}


def _status_code_for(error: Optional[BaseAppException]) -> int:
    if error is None:
        return 200
    for exc_type, code in _ERROR_STATUS.items():
        if isinstance(error, exc_type):
            return code
    return 500


async def _read_form_fields(request: Request) -> Dict[str, Any]:
    """Accept the landing page form as url-encoded, multipart or JSON."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}
        return payload if isinstance(payload, dict) else {}
    form = await request.form()
    return {field: form.get(field) for field in FORM_FIELDS if isinstance(form.get(field), str)}


@router.get("/status", response_model=StatusResponse)
async def get_status(
    settings: Settings = Depends(get_settings),
    store: Optional[WaitlistStore] = Depends(get_waitlist_store),
    dispatcher: Optional[EmailDispatcher] = Depends(get_email_dispatcher),
):
    return StatusResponse(
        registration_open=settings.REGISTRATION_OPEN,
        store_available=store is not None,
        email_provider=dispatcher.provider if dispatcher else "none",
    )


@router.post("/waitlist", response_model=SubmissionResult, response_model_exclude_none=True)
async def join_waitlist(
    request: Request,
    background_tasks: BackgroundTasks,
    service: WaitlistService = Depends(get_waitlist_service),
):
    """Handle a waitlist form submission.

    - Validates input
    - Rejects emails already on the list
    - Saves the entry to the store
    - Sends the admin notification after the response (failures are only logged)
    """
    raw = await _read_form_fields(request)
    outcome = await run_in_threadpool(service.submit, raw)
    if outcome.entry is not None:
        background_tasks.add_task(service.notify, outcome.entry)
    return JSONResponse(
        status_code=_status_code_for(outcome.error),
        content=outcome.result.model_dump(mode="json", exclude_none=True),
        background=background_tasks,
    )


@router.get("/waitlist/count", response_model=WaitlistCount)
def waitlist_count(service: WaitlistService = Depends(get_waitlist_service)):
    return WaitlistCount(count=service.count())
