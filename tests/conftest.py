from datetime import datetime, timedelta

import pytest

from src.taste_engine.engine import TasteEngine
from src.taste_engine.errors import StorageError
from src.taste_engine.ledger import PreferenceLedger
from src.taste_engine.storage import MemoryStore


START = datetime(2024, 3, 1, 12, 0, 0)


class FakeClock:
    def __init__(self, start=START):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FlakyStore(MemoryStore):
    """down=True 동안 모든 읽기/쓰기가 StorageError"""

    def __init__(self):
        super().__init__()
        self.down = False

    def get(self, key):
        if self.down:
            raise StorageError("store offline")
        return super().get(key)

    def set(self, key, value):
        if self.down:
            raise StorageError("store offline")
        super().set(key, value)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def engine(store, clock):
    return TasteEngine(store=store, clock=clock)


@pytest.fixture
def ledger():
    return PreferenceLedger()
