"""
Firebase Authentication client.

Used only when USE_FIREBASE is on: ID token verification plus creation and
deletion of auth users on behalf of company admins.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, Optional
import base64
import os

import firebase_admin
from firebase_admin import auth, credentials

from app.core.config import settings

logger = logging.getLogger(__name__)


class FirebaseAuthError(Exception):
    """Raised when Firebase refuses to create an auth user"""


def use_firebase_auth() -> bool:
    return settings.USE_FIREBASE is True


def _service_account_info() -> dict[str, Any] | None:
    if settings.FIREBASE_CREDENTIALS_JSON:
        return json.loads(settings.FIREBASE_CREDENTIALS_JSON)
    if settings.FIREBASE_CREDENTIALS_B64:
        return json.loads(base64.b64decode(settings.FIREBASE_CREDENTIALS_B64).decode("utf-8"))
    if settings.FIREBASE_CREDENTIALS_FILE and os.path.exists(settings.FIREBASE_CREDENTIALS_FILE):
        with open(settings.FIREBASE_CREDENTIALS_FILE, "r", encoding="utf-8") as f:
            return json.load(f)
    return None


@lru_cache(maxsize=1)
def get_firebase_app():
    """Initialize the default Firebase app once and return it.

    Expects credentials via one of: FIREBASE_CREDENTIALS_JSON, FIREBASE_CREDENTIALS_B64, FIREBASE_CREDENTIALS_FILE.
    """
    if not use_firebase_auth():
        return None

    if not firebase_admin._apps:
        info = _service_account_info()
        if not info:
            raise RuntimeError("Firebase credentials not provided. Set FIREBASE_CREDENTIALS_FILE, FIREBASE_CREDENTIALS_JSON, or FIREBASE_CREDENTIALS_B64")
        firebase_admin.initialize_app(credentials.Certificate(info))
        logger.info("Firebase app initialized")

    return firebase_admin.get_app()


def verify_id_token(token: str) -> Optional[str]:
    """Return the uid of a valid Firebase ID token, None otherwise"""
    try:
        claims = auth.verify_id_token(token, app=get_firebase_app())
    except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError,
            auth.RevokedIdTokenError, auth.CertificateFetchError) as e:
        logger.info(f"Rejected Firebase ID token: {e}")
        return None
    return claims.get("uid")


def create_auth_user(email: str, password: str, display_name: Optional[str] = None) -> str:
    """Create an email/password user and return its uid"""
    try:
        record = auth.create_user(email=email, password=password, display_name=display_name, app=get_firebase_app())
    except (ValueError, auth.EmailAlreadyExistsError) as e:
        raise FirebaseAuthError(str(e)) from e
    return record.uid


def delete_auth_user(uid: str) -> None:
    try:
        auth.delete_user(uid, app=get_firebase_app())
    except auth.UserNotFoundError:
        logger.warning(f"Firebase user {uid} already gone")
