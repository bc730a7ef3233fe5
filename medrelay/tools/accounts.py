"""
Mock account service: registration, login and one-time codes.

In production, this would call the pharmacy's user API and an email
provider for code delivery. Codes are logged here instead of emailed.
"""

import hashlib
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, TypedDict

from medrelay.config import settings
from medrelay.errors import ValidationError
from medrelay.schemas.catalog_schema import AuthResult
from medrelay.utils import is_valid_email

logger = logging.getLogger(__name__)

OTP_LENGTH = 4


class UserRecord(TypedDict):
    """User account stored in the system."""

    id: str
    name: str
    email: str
    phone: str
    password_hash: str
    salt: str


@dataclass
class OtpRecord:
    code: str
    purpose: str
    expires_at: datetime
    used: bool = False
    attempts: int = 0


class OtpCheck(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"
    MISSING = "missing"
    LOCKED = "locked"


_users: dict[str, UserRecord] = {}
_otps: dict[tuple[str, str], OtpRecord] = {}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _hash_password(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), 100_000).hex()


def _issue_token(user_id: str) -> str:
    return f"tok-{user_id}-{secrets.token_hex(8)}"


def register_user(name: str, email: str, password: str, phone: str) -> AuthResult:
    """Create an account. Raises ValidationError naming the offending field."""
    email = email.strip().lower()
    if not name or len(name.strip()) < 2:
        raise ValidationError("Name must be at least 2 characters", field_name="name")
    if not is_valid_email(email):
        raise ValidationError("Invalid email format", field_name="email")
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters", field_name="password")
    if email in _users:
        raise ValidationError("An account with this email already exists", field_name="email")

    salt = secrets.token_hex(8)
    user_id = f"U-{uuid.uuid4().hex[:8].upper()}"
    _users[email] = {
        "id": user_id,
        "name": name.strip(),
        "email": email,
        "phone": phone,
        "password_hash": _hash_password(password, salt),
        "salt": salt,
    }
    logger.info("New user registered: %s", user_id)
    return AuthResult(user_id=user_id, token=_issue_token(user_id), name=name.strip())


def login_user(email: str, password: str) -> AuthResult:
    """Authenticate with email and password."""
    record = _users.get(email.strip().lower())
    if record is None or _hash_password(password, record["salt"]) != record["password_hash"]:
        raise ValidationError("Invalid email or password", field_name="password")
    logger.info("User logged in: %s", record["id"])
    return AuthResult(user_id=record["id"], token=_issue_token(record["id"]), name=record["name"])


def is_registered(email: str) -> bool:
    return email.strip().lower() in _users


def issue_otp(email: str, purpose: str = "registration") -> str:
    """Issue a fresh code for ``email``, replacing any earlier one."""
    code = "".join(secrets.choice("0123456789") for _ in range(OTP_LENGTH))
    _otps[(email.strip().lower(), purpose)] = OtpRecord(
        code=code,
        purpose=purpose,
        expires_at=_now() + timedelta(minutes=settings.session.otp_ttl_minutes),
    )
    logger.info("OTP issued for %s (%s)", email, purpose)
    return code


def verify_otp(email: str, code: str, purpose: str = "registration") -> OtpCheck:
    """
    Check a code. Only a valid code is consumed; a wrong guess leaves the
    code usable until ``otp_max_attempts`` wrong guesses discard it. An
    expired code is discarded.
    """
    key = (email.strip().lower(), purpose)
    record = _otps.get(key)
    if record is None or record.used:
        return OtpCheck.MISSING
    if _now() > record.expires_at:
        del _otps[key]
        return OtpCheck.EXPIRED
    if not secrets.compare_digest(record.code, code.strip()):
        record.attempts += 1
        if record.attempts >= settings.session.otp_max_attempts:
            logger.warning("OTP for %s (%s) discarded after %d wrong attempts", email, purpose, record.attempts)
            del _otps[key]
            return OtpCheck.LOCKED
        return OtpCheck.INVALID
    record.used = True
    return OtpCheck.VALID


def peek_otp(email: str, purpose: str = "registration") -> Optional[str]:
    """Return the outstanding code. Stands in for reading the email inbox."""
    record = _otps.get((email.strip().lower(), purpose))
    return record.code if record and not record.used else None


def request_password_reset(email: str) -> None:
    """Issue a reset code if the account exists. Silent otherwise."""
    email = email.strip().lower()
    if not is_valid_email(email):
        raise ValidationError("Invalid email format", field_name="email")
    if email in _users:
        issue_otp(email, purpose="password_reset")


def reset() -> None:
    """Clear all accounts and codes. Used by test fixtures for isolation."""
    _users.clear()
    _otps.clear()
