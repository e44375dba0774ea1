import os
import sys

import pytest


def pytest_configure():
    # Ensure `src/` is importable as top-level for `common.*` / `state.*` / `wills.*`
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


class FakeClock:
    def __init__(self, t: float = 1_700_000_000.0) -> None:
        self.t = t

    def __call__(self) -> float:  # acts like time.time / time.monotonic
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def _recording_store_cls():
    from common.errors import TransportError
    from state.store import InMemoryStore

    class RecordingStore(InMemoryStore):
        """In-memory store that records write keys and can refuse writes per key."""

        def __init__(self, *args, **kwargs) -> None:
            super().__init__(*args, **kwargs)
            self.fail_writes_for: set[str] = set()
            self.writes: list[str] = []

        async def set_data(self, key: str, value: bytes) -> None:
            if key in self.fail_writes_for:
                raise TransportError(f"write rejected for {key}")
            await super().set_data(key, value)
            self.writes.append(key)

    return RecordingStore


@pytest.fixture
def store_factory():
    cls = _recording_store_cls()

    def make(initial=None, *, available: bool = True):
        return cls(initial, available=available)

    return make


@pytest.fixture
def store(store_factory):
    return store_factory()
