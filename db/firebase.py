"""
db/firebase.py
--------------
Initializes the Firebase Admin SDK and exposes the Realtime Database
reference that holds all identity documents (`users/`).

Credential lookup order:
    1. FIREBASE_CREDENTIALS_FILE (service-account JSON file)
    2. FIREBASE_PRIVATE_KEY + FIREBASE_CLIENT_EMAIL + FIREBASE_PROJECT_ID
    3. Application default credentials (Cloud Run / Cloud Functions)
"""

import firebase_admin
from firebase_admin import credentials, db

from config import (
    FIREBASE_CLIENT_EMAIL,
    FIREBASE_CREDENTIALS_FILE,
    FIREBASE_DATABASE_URL,
    FIREBASE_PRIVATE_KEY,
    FIREBASE_PROJECT_ID,
)
from utils.logger import get_logger

logger = get_logger(__name__)

USERS_PATH = "users"

_app: firebase_admin.App | None = None


def _load_credentials() -> credentials.Base:
    if FIREBASE_CREDENTIALS_FILE:
        return credentials.Certificate(FIREBASE_CREDENTIALS_FILE)
    if FIREBASE_PRIVATE_KEY and FIREBASE_CLIENT_EMAIL:
        return credentials.Certificate({
            "type": "service_account",
            "project_id": FIREBASE_PROJECT_ID,
            "private_key": FIREBASE_PRIVATE_KEY,
            "client_email": FIREBASE_CLIENT_EMAIL,
            "token_uri": "https://oauth2.googleapis.com/token",
        })
    return credentials.ApplicationDefault()


def init_firebase() -> None:
    """
    Initialize the default Firebase app once.

    Raises:
        ValueError: If no database URL is configured or the credentials are invalid.
    """
    global _app
    if _app is not None:
        return
    if not FIREBASE_DATABASE_URL:
        raise ValueError("FIREBASE_DATABASE_URL (or FIREBASE_PROJECT_ID) must be set.")
    try:
        _app = firebase_admin.initialize_app(
            _load_credentials(),
            {"databaseURL": FIREBASE_DATABASE_URL},
        )
        logger.info("Firebase initialized successfully.")
    except Exception as e:
        logger.error(f"Firebase initialization error: {e}")
        raise


def get_users_ref() -> db.Reference:
    """
    Get the `users` reference of the Realtime Database.

    Raises:
        RuntimeError: If init_firebase() has not been called.
    """
    if _app is None:
        raise RuntimeError("Firebase not initialized. Call init_firebase() first.")
    return db.reference(USERS_PATH, app=_app)


def close_firebase() -> None:
    """Delete the Firebase app and release its HTTP sessions."""
    global _app
    if _app is not None:
        firebase_admin.delete_app(_app)
        _app = None
        logger.info("Firebase app closed.")
