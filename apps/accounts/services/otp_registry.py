"""
OTP Registry Module
===================

Short-lived, single-use verification codes that gate account creation.

A pending registration is stored under the normalized email together with
the registration payload, a 6-digit code and the instant the code was issued.
Only whole entries are ever written or removed, so concurrent issue, resend
and verify calls for the same email never observe a half-updated record.

Classes:
    PendingRegistration: Immutable record held by a store.
    OtpStore: Whole-entry store interface.
    InMemoryOtpStore: Process-wide dict guarded by a lock (single instance).
    CacheOtpStore: Django cache backed store; atomic across processes on Redis.
    OtpRegistry: issue / resend / verify-and-consume on top of a store.

Example:
    Typical registration flow::

        registry = get_otp_registry()
        code = registry.issue('User@Example.com ', {'first_name': 'Ana'})
        # ... code is emailed ...
        payload = registry.verify_and_consume('user@example.com', code)

Note:
    Expiry is evaluated lazily at verification time. Expired entries stay in
    the store until the next verify or resend for that email.
"""

import logging
import secrets
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, NamedTuple, Optional

from django.conf import settings
from django.core.cache import caches
from django.core.cache.backends.base import BaseCache
from django.core.cache.backends.redis import RedisCache
from django.utils import timezone
from django.utils.module_loading import import_string
from redis.exceptions import WatchError

from .exceptions import (
    NoPendingRegistrationError,
    ExpiredOtpError,
    InvalidOtpError,
)

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


def normalize_email(email: str) -> str:
    """Registry key for an email: trimmed and lowercased."""
    return (email or '').strip().lower()


def generate_otp() -> str:
    """Uniformly random numeric code, zero padded (e.g. '004821')."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


class PendingRegistration(NamedTuple):
    """A registration waiting for its verification code."""

    email: str
    payload: dict
    code: str
    issued_at: datetime


class OtpStore(ABC):
    """
    Keyed store of PendingRegistration entries.

    Implementations must make every method atomic for its key. Entries are
    replaced or removed whole; no method mutates an entry in place.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[PendingRegistration]:
        """Return the current entry or None."""

    @abstractmethod
    def put(self, key: str, entry: PendingRegistration) -> None:
        """Store entry, overwriting whatever was there."""

    @abstractmethod
    def swap(self, key: str, expected: PendingRegistration, entry: PendingRegistration) -> bool:
        """Replace the entry only if it is still ``expected``."""

    @abstractmethod
    def discard(self, key: str, expected: PendingRegistration) -> bool:
        """Remove the entry only if it is still ``expected``."""


class InMemoryOtpStore(OtpStore):
    """Process-local store. Valid only for single-instance deployments."""

    def __init__(self):
        self._entries: dict[str, PendingRegistration] = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            return self._entries.get(key)

    def put(self, key, entry):
        with self._lock:
            self._entries[key] = entry

    def swap(self, key, expected, entry):
        with self._lock:
            if self._entries.get(key) is not expected:
                return False
            self._entries[key] = entry
            return True

    def discard(self, key, expected):
        with self._lock:
            if self._entries.get(key) is not expected:
                return False
            del self._entries[key]
            return True

    def __len__(self):
        with self._lock:
            return len(self._entries)


class CacheOtpStore(OtpStore):
    """
    Store backed by a Django cache alias (Redis in production).

    On ``RedisCache`` the compare step and the write of ``swap``/``discard``
    run as one WATCH/MULTI transaction on the raw client; a concurrent write
    to the key aborts the transaction and the comparison is retried. Other
    backends serialize the compare and the write with a process-local lock,
    which only holds within one process.
    """

    key_prefix = 'otp:pending:'

    def __init__(
        self,
        alias: Optional[str] = None,
        retention_seconds: Optional[int] = None,
        cache: Optional[BaseCache] = None,
    ):
        self.cache = cache if cache is not None else caches[alias or settings.OTP_CACHE_ALIAS]
        self.retention_seconds = retention_seconds or settings.OTP_CACHE_RETENTION_SECONDS
        self._lock = threading.Lock()

    @property
    def uses_redis(self) -> bool:
        return isinstance(self.cache, RedisCache)

    def _key(self, key):
        return f"{self.key_prefix}{key}"

    def get(self, key):
        return self.cache.get(self._key(key))

    def put(self, key, entry):
        if self.uses_redis:
            self.cache.set(self._key(key), entry, timeout=self.retention_seconds)
            return
        with self._lock:
            self.cache.set(self._key(key), entry, timeout=self.retention_seconds)

    def swap(self, key, expected, entry):
        if self.uses_redis:
            return self._redis_compare_and_write(key, expected, entry)
        with self._lock:
            if self.cache.get(self._key(key)) != expected:
                return False
            self.cache.set(self._key(key), entry, timeout=self.retention_seconds)
            return True

    def discard(self, key, expected):
        if self.uses_redis:
            return self._redis_compare_and_write(key, expected, None)
        with self._lock:
            if self.cache.get(self._key(key)) != expected:
                return False
            return bool(self.cache.delete(self._key(key)))

    def _redis_compare_and_write(self, key, expected, entry):
        """Replace (or delete, when ``entry`` is None) only if still ``expected``."""
        cache_key = self.cache.make_and_validate_key(self._key(key))
        backend = self.cache._cache
        client = backend.get_client(cache_key, write=True)
        timeout = self.cache.get_backend_timeout(self.retention_seconds)

        with client.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(cache_key)
                    raw = pipe.get(cache_key)
                    if raw is None or backend._serializer.loads(raw) != expected:
                        pipe.unwatch()
                        return False
                    pipe.multi()
                    if entry is None:
                        pipe.delete(cache_key)
                    else:
                        pipe.set(cache_key, backend._serializer.dumps(entry), ex=timeout)
                    pipe.execute()
                    return True
                except WatchError:
                    logger.debug("[OTP] Concurrent write on %s, comparing again", key)


class OtpRegistry:
    """
    Issue, resend and verify-and-consume verification codes.

    Args:
        store: Backing OtpStore.
        expiry_minutes: Expiry window; defaults to ``settings.OTP_EXPIRY_MINUTES``.
        bypass_code: Non-production override code; defaults to
            ``settings.OTP_TEST_OVERRIDE``. Ignored whenever OTP emails are
            actually being delivered.
        clock: Callable returning an aware datetime.
    """

    def __init__(
        self,
        store: OtpStore,
        *,
        expiry_minutes: Optional[int] = None,
        bypass_code: Optional[str] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.store = store
        self._expiry_minutes = expiry_minutes
        self._bypass_code = bypass_code
        self.clock = clock

    @property
    def expiry_minutes(self) -> int:
        if self._expiry_minutes is not None:
            return self._expiry_minutes
        return settings.OTP_EXPIRY_MINUTES

    @property
    def expiry(self) -> timedelta:
        return timedelta(minutes=self.expiry_minutes)

    def _active_bypass_code(self) -> Optional[str]:
        if settings.NOTIFICATIONS.get('OTP_EMAIL_ENABLED', True):
            return None
        code = self._bypass_code if self._bypass_code is not None else settings.OTP_TEST_OVERRIDE
        return (code or '').strip() or None

    def create_entry(self, email: str, payload: dict) -> PendingRegistration:
        """
        Store a pending registration under a fresh code.

        Any previous pending entry for the email is overwritten, which makes
        its code unusable.
        """
        key = normalize_email(email)
        if not key:
            raise ValueError('Email is required')

        entry = PendingRegistration(
            email=key,
            payload=payload,
            code=generate_otp(),
            issued_at=self.clock(),
        )
        self.store.put(key, entry)
        logger.info("[OTP] Stored pending registration for %s (expires in %s min)", key, self.expiry_minutes)
        return entry

    def issue(self, email: str, payload: dict) -> str:
        """Store a pending registration and return its new code."""
        return self.create_entry(email, payload).code

    def reissue(self, email: str) -> PendingRegistration:
        """
        Replace the pending entry's code and timestamp, keeping its payload.

        Raises:
            NoPendingRegistrationError: If nothing is pending for the email.
        """
        key = normalize_email(email)
        while True:
            current = self.store.get(key)
            if current is None:
                raise NoPendingRegistrationError(
                    "No pending registration found. Please fill out the registration form again."
                )
            fresh = current._replace(code=generate_otp(), issued_at=self.clock())
            if self.store.swap(key, current, fresh):
                logger.info("[OTP] Resent OTP for %s", key)
                return fresh

    def resend(self, email: str) -> str:
        """Issue a fresh code for an existing pending registration."""
        return self.reissue(email).code

    def verify_and_consume(self, email: str, code: str) -> Any:
        """
        Check a submitted code and, on success, remove the entry.

        Returns:
            The payload stored by ``issue``.

        Raises:
            NoPendingRegistrationError: Nothing pending (never issued, already
                consumed, or removed after expiry).
            ExpiredOtpError: The code is at least ``expiry`` old. The entry
                is removed.
            InvalidOtpError: The code does not match. The entry is kept so
                the user can retry until it expires.
        """
        key = normalize_email(email)
        entry = self.store.get(key)

        if entry is None:
            raise NoPendingRegistrationError(
                "No pending registration found for this email. Please request a new OTP."
            )

        if self.clock() - entry.issued_at >= self.expiry:
            self.store.discard(key, entry)
            logger.info("[OTP] Expired code rejected for %s", key)
            raise ExpiredOtpError("OTP has expired. Please request a new one.")

        submitted = (code or '').strip()
        bypass = self._active_bypass_code()
        if submitted != entry.code and not (bypass and submitted == bypass):
            raise InvalidOtpError("Invalid OTP. Please check your email and try again.")

        if not self.store.discard(key, entry):
            # Lost a race: either consumed elsewhere or replaced by a resend.
            if self.store.get(key) is not None:
                raise InvalidOtpError("Invalid OTP. Please check your email and try again.")
            raise NoPendingRegistrationError(
                "No pending registration found for this email. Please request a new OTP."
            )

        logger.info("[OTP] Verified successfully for %s", key)
        return entry.payload


_registry: Optional[OtpRegistry] = None
_registry_lock = threading.Lock()


def get_otp_registry() -> OtpRegistry:
    """Process-wide registry built from ``settings.OTP_STORE``."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                store_class = import_string(settings.OTP_STORE)
                _registry = OtpRegistry(store_class())
    return _registry


def reset_otp_registry() -> None:
    """Drop the process-wide registry (tests, settings reloads)."""
    global _registry
    with _registry_lock:
        _registry = None
