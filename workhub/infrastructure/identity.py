"""
Identity provider: credentials, account creation and session issuance.

Callers treat every method as a remote call: each one commits on its own
and failures surface as IdentityProviderError.
"""
import logging
import re
import secrets
from typing import MutableMapping

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from workhub.infrastructure.db.models import AuthUser

logger = logging.getLogger(__name__)

# pbkdf2_sha256: primary (no native deps)
# bcrypt: legacy support for hashes imported from older deployments
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated=["bcrypt"])

EMAIL_EXISTS = "email_exists"
INVALID_CREDENTIALS = "invalid_credentials"
WEAK_PASSWORD = "weak_password"
INVALID_EMAIL = "invalid_email"

MIN_PASSWORD_LENGTH = 6
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")

# Message fragments older providers return instead of an error code
_EMAIL_EXISTS_FRAGMENTS = ("already", "exists", "registered")


class IdentityProviderError(Exception):
    def __init__(self, message: str, code: str | None = None):
        self.code = code
        super().__init__(message)


def is_email_exists_error(error: Exception) -> bool:
    """
    True when account creation failed because the email is taken.

    Prefers the structured code; the substring check is a compatibility
    shim for providers that only return a message.
    """
    code = getattr(error, "code", None)
    if code is not None:
        return code == EMAIL_EXISTS
    message = str(error).lower()
    return any(fragment in message for fragment in _EMAIL_EXISTS_FRAGMENTS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def random_password() -> str:
    """Throwaway credential for accounts that only log in through a provider."""
    return secrets.token_urlsafe(32)


class IdentityProvider:
    def __init__(self, db: Session):
        self.db = db

    # ── accounts ────────────────────────────────────────────────────────────

    def sign_up(self, email: str, password: str) -> str:
        email = email.strip().lower()
        if not _EMAIL_RE.match(email):
            raise IdentityProviderError("Invalid email address", code=INVALID_EMAIL)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise IdentityProviderError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters",
                code=WEAK_PASSWORD,
            )
        return self.create_user(email, password)

    def create_user(
        self,
        email: str,
        password: str,
        email_confirm: bool = False,
        metadata: dict | None = None,
    ) -> str:
        """Create a user and return its id. Duplicate email -> EMAIL_EXISTS."""
        email = email.strip().lower()
        if self.get_user_id_by_email(email):
            raise IdentityProviderError("User already registered", code=EMAIL_EXISTS)

        user = AuthUser(
            email=email,
            password_hash=hash_password(password),
            user_metadata=metadata or {},
            email_confirmed=email_confirm,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise IdentityProviderError(
                "A user with this email address has already been registered",
                code=EMAIL_EXISTS,
            ) from exc
        return user.id

    def sign_in_with_password(self, email: str, password: str) -> str:
        user = self.db.query(AuthUser).filter(AuthUser.email == email.strip().lower()).first()
        if not user or not verify_password(password, user.password_hash):
            raise IdentityProviderError("Invalid login credentials", code=INVALID_CREDENTIALS)
        return user.id

    def get_user_id_by_email(self, email: str) -> str | None:
        user = self.db.query(AuthUser).filter(AuthUser.email == email.strip().lower()).first()
        return user.id if user else None

    def get_user_email(self, user_id: str) -> str | None:
        user = self.db.get(AuthUser, user_id)
        return user.email if user else None

    def delete_user(self, user_id: str) -> None:
        deleted = self.db.query(AuthUser).filter(AuthUser.id == user_id).delete()
        self.db.commit()
        if not deleted:
            raise IdentityProviderError("User not found", code="user_not_found")

    # ── sessions ────────────────────────────────────────────────────────────

    @staticmethod
    def establish_session(session: MutableMapping, user_id: str) -> None:
        session.clear()
        session["user_id"] = user_id

    @staticmethod
    def clear_session(session: MutableMapping) -> None:
        session.clear()
