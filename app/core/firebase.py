"""
Firestore client construction for the waitlist store.

The client is built once at application startup from settings and injected
where needed; nothing here runs at import time.
"""
import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.auth.exceptions import DefaultCredentialsError

from app.core.config import Settings
from app.core.exceptions import StoreConfigurationError

logger = logging.getLogger(__name__)

APP_NAME = "konecbo-waitlist"


def _get_or_init_app(options: dict, credential=None) -> firebase_admin.App:
    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        return firebase_admin.initialize_app(credential, options=options, name=APP_NAME)


def _client_for(app: firebase_admin.App):
    try:
        return firestore.client(app)
    except DefaultCredentialsError as e:
        raise StoreConfigurationError("Firestore credentials could not be loaded", details=str(e))


def create_firestore_client(settings: Settings) -> Optional["firestore.Client"]:
    """Return a Firestore client, or None when no credentials are configured.

    FIREBASE_SERVICE_ACCOUNT_KEY (service account JSON) wins over
    FIREBASE_PROJECT_ID (application default credentials). Credentials that
    are present but unusable raise StoreConfigurationError.
    """
    raw_key = (settings.FIREBASE_SERVICE_ACCOUNT_KEY or "").strip()
    project_id = (settings.FIREBASE_PROJECT_ID or "").strip()

    if raw_key:
        try:
            key = json.loads(raw_key)
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing FIREBASE_SERVICE_ACCOUNT_KEY: {e}")
            raise StoreConfigurationError("Invalid FIREBASE_SERVICE_ACCOUNT_KEY format", details=str(e))
        try:
            cred = credentials.Certificate(key)
        except ValueError as e:
            raise StoreConfigurationError("Invalid FIREBASE_SERVICE_ACCOUNT_KEY contents", details=str(e))
        app = _get_or_init_app({"projectId": key.get("project_id") or project_id or None}, cred)
        logger.info("Firestore initialized from service account key")
        return _client_for(app)

    if project_id:
        app = _get_or_init_app({"projectId": project_id})
        logger.info(f"Firestore initialized with default credentials for project {project_id}")
        return _client_for(app)

    logger.warning(
        "Firestore not configured: missing FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_PROJECT_ID"
    )
    return None
