# qairoz/utils/otp.py
"""
Email one-time passwords, held in process memory.

One live code per address. Issuing a new code replaces the old one; a code
dies when it is verified, when it expires, or when it has been guessed at
OTP_MAX_ATTEMPTS times. Only an HMAC of the code is kept.
"""
import hashlib
import hmac
import logging
import math
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from qairoz import config
from qairoz.utils import email as email_utils

logger = logging.getLogger(__name__)

MSG_NOT_FOUND = "OTP not found or expired. Please request a new one."
MSG_EXPIRED = "OTP has expired. Please request a new one."
MSG_TOO_MANY_ATTEMPTS = "Too many attempts. Please request a new OTP."
MSG_VERIFIED = "Email verified successfully!"
MSG_GENERATED = "OTP generated successfully"
MSG_GENERATION_FAILED = "Failed to generate OTP. Please try again."


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _generate_numeric_otp(length: int) -> str:
    """Generate a secure numeric OTP as a zero-padded string."""
    if length <= 0:
        length = 6
    return str(secrets.randbelow(10 ** length)).zfill(length)


def _hash_otp(code: str) -> str:
    """HMAC-SHA256 hash of the OTP using secret. Returns hex digest."""
    key = config.OTP_HASH_SECRET.encode("utf-8")
    return hmac.new(key, code.encode("utf-8"), hashlib.sha256).hexdigest()


@dataclass
class OTPRecord:
    email: str
    code_hash: str
    expires_at: float
    attempts: int = 0


@dataclass
class OTPVerification:
    success: bool
    message: str
    reason: str
    attempts_left: Optional[int] = None


class OTPStore:
    """Thread-safe map of email -> pending OTP."""

    def __init__(
        self,
        expire_seconds: Optional[int] = None,
        max_attempts: Optional[int] = None,
        length: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.expire_seconds = expire_seconds if expire_seconds is not None else config.OTP_EXPIRE_MINUTES * 60
        self.max_attempts = max_attempts if max_attempts is not None else config.OTP_MAX_ATTEMPTS
        self.length = length if length is not None else config.OTP_LENGTH
        self._clock = clock
        self._records: Dict[str, OTPRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _purge_expired(self) -> None:
        # caller holds the lock
        now = self._clock()
        for key in [k for k, r in self._records.items() if now > r.expires_at]:
            del self._records[key]
            logger.debug("Cleaned up expired OTP for %s", key)

    def cleanup_expired(self) -> None:
        with self._lock:
            self._purge_expired()

    def clear(self, email: str) -> None:
        key = normalize_email(email)
        with self._lock:
            if self._records.pop(key, None) is not None:
                logger.debug("Cleared OTP for %s", key)

    def issue(self, email: str) -> str:
        """Replace any pending code for `email` with a fresh one and return it."""
        key = normalize_email(email)
        code = _generate_numeric_otp(self.length)
        with self._lock:
            self._purge_expired()
            self._records[key] = OTPRecord(
                email=key,
                code_hash=_hash_otp(code),
                expires_at=self._clock() + self.expire_seconds,
            )
        logger.info("Issued OTP for %s (expires in %ss)", key, self.expire_seconds)
        return code

    def verify(self, email: str, code: str) -> OTPVerification:
        key = normalize_email(email)
        with self._lock:
            self._purge_expired()
            record = self._records.get(key)
            if record is None:
                return OTPVerification(False, MSG_NOT_FOUND, "not_found")

            if self._clock() > record.expires_at:
                del self._records[key]
                return OTPVerification(False, MSG_EXPIRED, "expired")

            if record.attempts >= self.max_attempts:
                del self._records[key]
                return OTPVerification(False, MSG_TOO_MANY_ATTEMPTS, "max_attempts_exceeded")

            record.attempts += 1
            if hmac.compare_digest(_hash_otp((code or "").strip()), record.code_hash):
                del self._records[key]
                logger.info("OTP verified for %s", key)
                return OTPVerification(True, MSG_VERIFIED, "verified")

            remaining = self.max_attempts - record.attempts
            logger.info("Invalid OTP for %s (attempt %d/%d)", key, record.attempts, self.max_attempts)
            return OTPVerification(
                False,
                f"Invalid OTP. {remaining} attempts remaining.",
                "invalid_code",
                attempts_left=remaining,
            )

    def time_remaining(self, email: str) -> int:
        """Whole seconds until the pending code expires, 0 if there is none."""
        key = normalize_email(email)
        with self._lock:
            self._purge_expired()
            record = self._records.get(key)
            if record is None:
                return 0
            return math.ceil(max(0.0, record.expires_at - self._clock()))

    def has_active(self, email: str) -> bool:
        key = normalize_email(email)
        with self._lock:
            self._purge_expired()
            return key in self._records


# Process-wide store used by the API
otp_store = OTPStore()


def get_otp_store() -> OTPStore:
    return otp_store


def send_email_otp(store: OTPStore, email: str) -> dict:
    """
    High-level: issue a fresh OTP and email it.
    A failed delivery keeps the OTP alive; only an unexpected error drops it.
    """
    try:
        code = store.issue(email)
    except Exception as e:
        logger.exception("Failed to generate OTP for %s: %s", email, e)
        store.clear(email)
        return {"success": False, "message": MSG_GENERATION_FAILED, "email_sent": False, "expires_in": 0}

    sent = False
    try:
        sent = email_utils.send_otp_email(email, code, expires_minutes=max(1, store.expire_seconds // 60))
    except Exception as e:
        logger.exception("Failed to send OTP email to %s: %s", email, e)
    if not sent:
        logger.warning("OTP email to %s was not delivered; code is still valid", email)

    return {
        "success": True,
        "message": MSG_GENERATED,
        "email_sent": sent,
        "expires_in": store.time_remaining(email),
    }
