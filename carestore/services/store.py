"""
Key-value store primitives.

Key patterns:
- Protocol-based dependency injection (the backend is always passed in)
- Generic Result type for best-effort operations
- Three primitives (get, set, scan_by_prefix) plus delete for cleanup

Every higher-level service is written against KeyValueStore only, so the
backend can be any string-keyed store that supports prefix matching.
"""

import asyncio
import copy
from collections.abc import Awaitable, Iterable
from typing import Any, Generic, Protocol, TypeVar

import structlog

from carestore.domain.errors import StoreError, StoreUnavailable

logger = structlog.get_logger(__name__)

# Generic Result type for explicit error handling
ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)
T = TypeVar("T")


class Result(Generic[ValueT, ErrorT]):
    """
    Explicit error handling without exceptions for expected failures.

    Used where a caller wants every outcome of a batch rather than the first
    failure: per-record cleanup, the status probe.
    """

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        if self._error:
            raise self._error
        return self._value  # type: ignore

    def unwrap_or(self, default: ValueT) -> ValueT:
        return self._value if self._error is None else default  # type: ignore

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error


async def concurrent_reads(*calls: Awaitable[Any]) -> list[Any]:
    """
    Await independent reads together and return their results in call order.

    Structured concurrency: if one read fails the others are cancelled and
    the first failure is raised as-is rather than wrapped in an ExceptionGroup.
    """
    try:
        async with asyncio.TaskGroup() as task_group:
            tasks = [task_group.create_task(call) for call in calls]  # type: ignore[arg-type]
    except ExceptionGroup as group:
        raise group.exceptions[0] from None
    return [task.result() for task in tasks]


class KeyValueBackend(Protocol):
    """
    Protocol for the remote two-column (key, value) table.

    get returns None for an absent key. scan_by_prefix returns values only,
    and an empty list when nothing matches. set is an upsert, last write wins.
    """

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def scan_by_prefix(self, prefix: str) -> list[Any]: ...

    async def delete(self, key: str) -> None: ...

    async def aclose(self) -> None: ...


class InMemoryBackend:
    """
    Dict-backed backend preserving insertion order.

    Values are deep-copied on the way in and out so callers never share
    state with the table. Keys listed in failing_keys, or every key while
    offline is set, raise StoreUnavailable.
    """

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        failing_keys: Iterable[str] = (),
    ) -> None:
        self._data: dict[str, Any] = copy.deepcopy(data) if data else {}
        self.failing_keys: set[str] = set(failing_keys)
        self.offline = False
        self.calls: list[tuple[str, str]] = []

    def _check(self, op: str, target: str) -> None:
        self.calls.append((op, target))
        if self.offline:
            raise StoreUnavailable(f"In-memory store offline during {op}")
        if target in self.failing_keys:
            raise StoreUnavailable(f"Simulated failure during {op} of {target}")

    async def get(self, key: str) -> Any | None:
        self._check("get", key)
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._check("set", key)
        self._data[key] = copy.deepcopy(value)

    async def scan_by_prefix(self, prefix: str) -> list[Any]:
        self._check("scan", prefix)
        return [copy.deepcopy(v) for k, v in self._data.items() if k.startswith(prefix)]

    async def delete(self, key: str) -> None:
        self._check("delete", key)
        self._data.pop(key, None)

    async def aclose(self) -> None:
        return None

    def keys(self) -> list[str]:
        return list(self._data)


class KeyValueStore:
    """
    Facade over a KeyValueBackend with logging and error normalization.

    StoreError raised by the backend propagates unchanged; anything else the
    backend raises is wrapped in StoreUnavailable.
    """

    def __init__(self, backend: KeyValueBackend) -> None:
        self.backend = backend
        self.logger = logger.bind(component="kv_store", backend=type(backend).__name__)

    async def _call(self, op: str, target: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except StoreError as e:
            self.logger.warning(
                f"store_{op}_failed", target=target, kind=e.kind.value, error=str(e)
            )
            raise
        except Exception as e:
            self.logger.exception(f"store_{op}_unexpected_error", target=target, error=str(e))
            raise StoreUnavailable(f"Store {op} failed for {target!r}", e) from e

    @staticmethod
    def _require_key(key: str) -> None:
        if not key:
            raise ValueError("Store keys must be non-empty strings")

    async def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None when absent."""
        self._require_key(key)
        value = await self._call("get", key, self.backend.get(key))
        self.logger.debug("store_get", key=key, found=value is not None)
        return value

    async def set(self, key: str, value: Any) -> None:
        """Create or replace the value stored under key."""
        self._require_key(key)
        await self._call("set", key, self.backend.set(key, value))
        self.logger.debug("store_set", key=key)

    async def scan_by_prefix(self, prefix: str) -> list[Any]:
        """Return the values of every key starting with prefix."""
        self._require_key(prefix)
        values = await self._call("scan", prefix, self.backend.scan_by_prefix(prefix))
        self.logger.debug("store_scan", prefix=prefix, count=len(values))
        return values

    async def delete(self, key: str) -> None:
        """Remove key; deleting an absent key is not an error."""
        self._require_key(key)
        await self._call("delete", key, self.backend.delete(key))
        self.logger.debug("store_delete", key=key)

    async def aclose(self) -> None:
        await self.backend.aclose()
