import pytest
from datetime import datetime, timezone as dt_timezone
from django.core.cache.backends.redis import RedisCache
from redis.exceptions import WatchError
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.accounts.services.otp_registry import (
    CacheOtpStore,
    InMemoryOtpStore,
    OtpRegistry,
    reset_otp_registry,
)


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=dt_timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture(autouse=True)
def fresh_otp_registry():
    """Each test starts with an empty process-wide registry."""
    reset_otp_registry()
    yield
    reset_otp_registry()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_store():
    return InMemoryOtpStore()


@pytest.fixture
def registry(otp_store, clock):
    """Registry with a 10 minute window and a controllable clock."""
    return OtpRegistry(otp_store, expiry_minutes=10, clock=clock)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a test customer."""
    return User.objects.create_user(
        email='customer@example.com',
        password='TestPass123!',
        first_name='Test',
        last_name='Customer',
    )


@pytest.fixture
def user_inactive(db):
    """Create and return an inactive user."""
    return User.objects.create_user(
        email='inactive@example.com',
        password='TestPass123!',
        first_name='Inactive',
        is_active=False,
    )


@pytest.fixture
def authenticated_client(api_client, user):
    """Return an authenticated API client using JWT."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def registration_data():
    return {
        'email': 'New.Customer@Example.com ',
        'password': 'SecurePass123!',
        'password_confirm': 'SecurePass123!',
        'first_name': 'Nina',
        'last_name': 'Novak',
        'phone': '+420123456789',
    }


class FakeRedis:
    """In-memory stand-in for the redis-py client used by RedisCache.

    Every write bumps a per-key version so WATCH can detect it. Set
    ``after_watched_read`` to run a callback once, right after the next
    read inside a WATCH, to interleave a competing write.
    """

    def __init__(self):
        self.data = {}
        self.versions = {}
        self.after_watched_read = None

    def _bump(self, key):
        self.versions[key] = self.versions.get(key, 0) + 1

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self._bump(key)
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                self._bump(key)
                removed += 1
        return removed

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:

    def __init__(self, redis):
        self.redis = redis
        self.reset()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.reset()

    def reset(self):
        self.watched = {}
        self.queued = None

    def watch(self, *keys):
        for key in keys:
            self.watched[key] = self.redis.versions.get(key, 0)

    def unwatch(self):
        self.watched = {}

    def get(self, key):
        value = self.redis.get(key)
        callback, self.redis.after_watched_read = self.redis.after_watched_read, None
        if callback:
            callback()
        return value

    def multi(self):
        self.queued = []

    def set(self, *args, **kwargs):
        self.queued.append(('set', args, kwargs))

    def delete(self, *keys):
        self.queued.append(('delete', keys, {}))

    def execute(self):
        changed = any(self.redis.versions.get(key, 0) != version for key, version in self.watched.items())
        queued = self.queued
        self.reset()
        if changed:
            raise WatchError('Watched variable changed.')
        return [getattr(self.redis, name)(*args, **kwargs) for name, args, kwargs in queued]


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_otp_store(fake_redis, monkeypatch):
    """CacheOtpStore on a RedisCache whose client is a FakeRedis."""
    cache = RedisCache('redis://localhost:6379/15', {})
    monkeypatch.setattr(cache._cache, 'get_client', lambda key=None, *, write=False: fake_redis)
    return CacheOtpStore(cache=cache, retention_seconds=60)


@pytest.fixture
def locmem_otp_store():
    store = CacheOtpStore(alias='default', retention_seconds=60)
    store.cache.clear()
    return store
