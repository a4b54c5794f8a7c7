"""
Connection/status probe for the remote store.

A single point read of a well-known key. The outcome is classified from the
error kind alone: unreachable store, reachable store without the table, or
healthy. An absent probe key is a healthy store, not an error.
"""

import time

import structlog

from carestore.domain.errors import StoreError, StoreErrorKind
from carestore.domain.models import ConnectionStatus
from carestore.services.store import KeyValueStore, Result

logger = structlog.get_logger(__name__)


class StatusProbe:
    """Reports whether the store can be reached; never raises StoreError."""

    def __init__(self, store: KeyValueStore, probe_key: str = "therapy_types") -> None:
        self.store = store
        self.probe_key = probe_key
        self.logger = logger.bind(component="status_probe", probe_key=probe_key)

    async def _probe(self) -> Result[bool, StoreError]:
        try:
            value = await self.store.get(self.probe_key)
        except StoreError as e:
            return Result.err(e)
        return Result.ok(value is not None)

    async def test_connection(self) -> ConnectionStatus:
        started = time.perf_counter()
        result = await self._probe()
        latency_ms = round((time.perf_counter() - started) * 1000, 3)

        if result.is_ok():
            detail = "Connected" if result.unwrap() else "Connected; probe key not present"
            status = ConnectionStatus(
                reachable=True, table_present=True, detail=detail, latency_ms=latency_ms
            )
        else:
            error = result.unwrap_err()
            if error.kind == StoreErrorKind.UNAVAILABLE:
                status = ConnectionStatus(
                    reachable=False,
                    table_present=False,
                    detail=f"Store unreachable: {error}",
                    error_kind=error.kind.value,
                    latency_ms=latency_ms,
                )
            elif error.kind == StoreErrorKind.TABLE_MISSING:
                status = ConnectionStatus(
                    reachable=True,
                    table_present=False,
                    detail=f"Store reachable but the key-value table is missing: {error}",
                    error_kind=error.kind.value,
                    latency_ms=latency_ms,
                )
            else:
                status = ConnectionStatus(
                    reachable=True,
                    table_present=True,
                    detail=f"Store reachable but the probe failed: {error}",
                    error_kind=error.kind.value,
                    latency_ms=latency_ms,
                )

        log = self.logger.info if status.reachable and status.table_present else self.logger.warning
        log(
            "connection_probed",
            reachable=status.reachable,
            table_present=status.table_present,
            error_kind=status.error_kind,
            latency_ms=latency_ms,
        )
        return status
