"""
Shared fixtures for the auth service tests.

Store-backed units run against InMemoryStore, a fake with the same interface
and conditional-write semantics as auth_shared.store.DynamoStore.
"""

import copy
import os
import sys
import threading
import time
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent

# Add lambda paths
sys.path.insert(0, str(ROOT / 'lambda'))
sys.path.insert(0, str(ROOT / 'lambda' / 'auth_api'))
sys.path.insert(0, str(ROOT / 'lambda' / 'auth_authorizer'))

# Handlers read configuration at import time
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('TABLE_NAME', 'todo-auth-test')
os.environ.setdefault('JWT_SECRET_PARAMETER_NAME', '/todo-auth/test/jwt-secret')
os.environ.setdefault('SOURCE_EMAIL', 'no-reply@example.com')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('METRICS_ENABLED', 'false')

from auth_shared.codes import VerificationCodeIssuer  # noqa: E402
from auth_shared.service import AuthService  # noqa: E402
from auth_shared.signing_secret import StaticSecretProvider  # noqa: E402
from auth_shared.store import ITEM_ABSENT, ITEM_EXISTS, INDEX_KEYS, ConditionFailedError  # noqa: E402
from auth_shared.tokens import TokenService  # noqa: E402
from auth_shared.users import UserRepository  # noqa: E402


TEST_SECRET = 'test-signing-secret-with-enough-entropy-0123456789'


class InMemoryStore:
    """Dict-backed stand-in for DynamoStore."""

    def __init__(self):
        self.items = {}
        self._lock = threading.Lock()

    def _check(self, key, condition):
        if condition == ITEM_ABSENT and key in self.items:
            raise ConditionFailedError(condition)
        if condition == ITEM_EXISTS and key not in self.items:
            raise ConditionFailedError(condition)

    def get(self, pk, sk):
        with self._lock:
            item = self.items.get((pk, sk))
            return copy.deepcopy(item) if item is not None else None

    def put(self, item, condition=None):
        key = (item['PK'], item['SK'])
        with self._lock:
            self._check(key, condition)
            self.items[key] = copy.deepcopy(item)

    def update(self, pk, sk, values, condition=None):
        key = (pk, sk)
        with self._lock:
            self._check(key, condition)
            item = self.items.setdefault(key, {'PK': pk, 'SK': sk})
            item.update(copy.deepcopy(values))
            return copy.deepcopy(item)

    def delete(self, pk, sk, condition=None):
        key = (pk, sk)
        with self._lock:
            self._check(key, condition)
            self.items.pop(key, None)

    def query(self, pk, sk_prefix=None, index_name=None, limit=None, newest_first=False):
        pk_name, sk_name = INDEX_KEYS[index_name]
        with self._lock:
            matches = [
                copy.deepcopy(item) for item in self.items.values()
                if item.get(pk_name) == pk
                and (sk_prefix is None or str(item.get(sk_name, '')).startswith(sk_prefix))
            ]
        matches.sort(key=lambda item: item[sk_name], reverse=newest_first)
        return matches[:limit] if limit else matches


class RecordingMailer:
    """Captures delivered codes instead of sending email."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_code(self, email, code, purpose, ttl_seconds):
        if self.fail:
            raise RuntimeError('SES unavailable')
        self.sent.append({
            'email': email,
            'code': code,
            'purpose': purpose,
            'ttl_seconds': ttl_seconds
        })

    def last_code(self, email):
        for message in reversed(self.sent):
            if message['email'] == email:
                return message['code']
        return None


class FakeClock:
    """Controllable epoch clock."""

    def __init__(self, now=None):
        self.now = float(now if now is not None else time.time())

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class SequenceCodes:
    """Returns queued codes in order, then repeats the last one."""

    def __init__(self, *codes):
        self.codes = list(codes)

    def __call__(self):
        if len(self.codes) > 1:
            return self.codes.pop(0)
        return self.codes[0]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def code_factory():
    return SequenceCodes('123456')


@pytest.fixture
def users(store, clock):
    return UserRepository(store, clock=clock)


@pytest.fixture
def codes(store, mailer, clock, code_factory):
    return VerificationCodeIssuer(store, mailer, clock=clock, code_factory=code_factory)


@pytest.fixture
def tokens():
    return TokenService(StaticSecretProvider(TEST_SECRET))


@pytest.fixture
def auth_service(users, codes, tokens):
    return AuthService(users=users, codes=codes, tokens=tokens)
