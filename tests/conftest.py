import pytest

from sessionkit import MemoryStore, RequestContext


class ManualClock:
    def __init__(self, start: int = 1_700_000_000) -> None:
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(remote_addr="203.0.113.7", user_agent="pytest-agent/1.0")


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()
