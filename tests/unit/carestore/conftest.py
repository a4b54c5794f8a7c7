"""Shared fixtures: an in-memory backend and the store and services over it."""

from collections.abc import Callable, Iterator
from itertools import count

import pytest

from carestore.services.store import InMemoryBackend, KeyValueStore


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def store(backend: InMemoryBackend) -> KeyValueStore:
    return KeyValueStore(backend)


@pytest.fixture
def sequential_ids() -> Callable[[], str]:
    """Deterministic id factory yielding "1", "2", ..."""
    counter: Iterator[int] = count(1)
    return lambda: str(next(counter))
