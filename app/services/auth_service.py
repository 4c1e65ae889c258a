"""
Authentication: sessions, passwords and auth-user lifecycle.

When USE_FIREBASE is on, identity lives in Firebase Authentication: the
browser signs in with the Firebase SDK and sends its ID token, which is
verified here, and admin user creation/deletion go through firebase_admin.
Otherwise users sign in against a bcrypt hash stored on the profile and get
a signed session token.
"""

import logging
import secrets
from typing import Optional

import bcrypt
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import Profile
from app.services.firebase_client import (
    FirebaseAuthError, create_auth_user, delete_auth_user, use_firebase_auth, verify_id_token,
)

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when the auth backend refuses an operation"""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=settings.SECRET_KEY, salt="session-token")


def temporary_password() -> str:
    return secrets.token_urlsafe(6)[:8]


class AuthService:
    """Session issuance and auth-user management"""

    @staticmethod
    def issue_token(profile: Profile) -> str:
        return _serializer().dumps({"uid": profile.id})

    @staticmethod
    def resolve_token(db: Session, token: str) -> Optional[Profile]:
        """Map a bearer/session token to its profile, or None if invalid"""
        if not token:
            return None

        if use_firebase_auth():
            uid = verify_id_token(token)
        else:
            try:
                payload = _serializer().loads(token, max_age=settings.SESSION_MAX_AGE)
            except (BadSignature, SignatureExpired):
                return None
            uid = payload.get("uid")

        if not uid:
            return None
        return db.query(Profile).filter(Profile.id == uid).first()

    @staticmethod
    def sign_up(db: Session, email: str, password: str, full_name: Optional[str] = None) -> Profile:
        if db.query(Profile).filter(Profile.email == email).first():
            raise AuthError("This email is already registered in the system.")
        return AuthService.create_user(db, email=email, password=password, full_name=full_name)

    @staticmethod
    def sign_in(db: Session, email: str, password: str) -> str:
        if use_firebase_auth():
            raise AuthError("Sign-in is handled by Firebase Authentication; send the Firebase ID token instead.")

        profile = db.query(Profile).filter(Profile.email == email).first()
        if not profile or not verify_password(password, profile.password_hash):
            raise AuthError("Invalid login credentials")
        logger.info(f"User {profile.email} signed in")
        return AuthService.issue_token(profile)

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        role: str = "staff",
        company_id: Optional[str] = None,
    ) -> Profile:
        """Create the auth identity and its profile row"""
        profile = Profile(email=email, full_name=full_name, role=role, company_id=company_id)

        if use_firebase_auth():
            try:
                profile.id = create_auth_user(email, password, display_name=full_name)
            except FirebaseAuthError as e:
                raise AuthError(str(e)) from e
        else:
            profile.password_hash = hash_password(password)

        db.add(profile)
        db.commit()
        db.refresh(profile)
        logger.info(f"Created user {email} with role {role}")
        return profile

    @staticmethod
    def delete_user(db: Session, profile: Profile) -> None:
        """Delete the auth identity; the profile goes with it"""
        if use_firebase_auth():
            delete_auth_user(profile.id)

        email = profile.email
        db.delete(profile)
        db.commit()
        logger.info(f"Deleted user {email}")
