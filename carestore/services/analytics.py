"""
Analytics computed by re-scanning the session, progress and patient prefixes.

There is no incremental state: every call reads the prefixes from scratch
and reduces them in memory. The independent scans run concurrently.

Counts and means work on the raw scanned documents rather than validated
models, so a stored record with an unusual time or an out-of-range score
still counts.
"""

from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from typing import Any

import structlog

from carestore.domain.keys import EntityKind
from carestore.domain.models import (
    AnalyticsSummary,
    DoctorSummary,
    ProgressEntry,
    ProgressTrend,
    SessionStatus,
)
from carestore.services.repository import Repository
from carestore.services.store import KeyValueStore, concurrent_reads

logger = structlog.get_logger(__name__)


def round_one_decimal(value: float) -> float:
    """Round to one decimal place, ties toward positive infinity (2.25 -> 2.3, -0.25 -> -0.2)."""
    amount = Decimal(str(value))
    rounding = ROUND_HALF_UP if amount >= 0 else ROUND_HALF_DOWN
    return float(amount.quantize(Decimal("0.1"), rounding=rounding))


def mean_score(values: Iterable[float]) -> float:
    """Arithmetic mean, 0 for no values, rounded to one decimal."""
    items = list(values)
    return round_one_decimal(sum(items) / max(len(items), 1))


def _documents(values: list[Any]) -> list[dict[str, Any]]:
    return [v for v in values if isinstance(v, dict)]


def _numbers(documents: Iterable[dict[str, Any]], field: str) -> list[float]:
    """The numeric values stored under field; booleans and other types are left out."""
    values = (d.get(field) for d in documents)
    return [v for v in values if isinstance(v, int | float) and not isinstance(v, bool)]


def _count_status(documents: Iterable[dict[str, Any]], status: SessionStatus) -> int:
    default = SessionStatus.SCHEDULED.value
    return sum(1 for d in documents if d.get("status", default) == status.value)


class AnalyticsService:
    """Clinic-wide and per-entity summaries."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.progress = Repository(store, EntityKind.PROGRESS, ProgressEntry)
        self.logger = logger.bind(component="analytics_service")

    async def compute_summary(self) -> AnalyticsSummary:
        raw_sessions, raw_progress, raw_patients = await concurrent_reads(
            self.store.scan_by_prefix(EntityKind.SESSION.prefix),
            self.store.scan_by_prefix(EntityKind.PROGRESS.prefix),
            self.store.scan_by_prefix(EntityKind.PATIENT.prefix),
        )
        sessions = _documents(raw_sessions)
        progress = _documents(raw_progress)

        summary = AnalyticsSummary(
            total_patients=len(raw_patients),
            total_sessions=len(raw_sessions),
            completed_sessions=_count_status(sessions, SessionStatus.COMPLETED),
            upcoming_sessions=_count_status(sessions, SessionStatus.SCHEDULED),
            cancelled_sessions=_count_status(sessions, SessionStatus.CANCELLED),
            avg_symptom_score=mean_score(_numbers(progress, "symptom_score")),
            avg_energy_level=mean_score(_numbers(progress, "energy_level")),
            avg_sleep_quality=mean_score(_numbers(progress, "sleep_quality")),
        )
        self.logger.info(
            "analytics_summary_computed",
            sessions=summary.total_sessions,
            progress_entries=len(raw_progress),
            patients=summary.total_patients,
        )
        return summary

    async def doctor_summary(self, doctor_id: str, today: date | None = None) -> DoctorSummary:
        """Session counts for one doctor as seen on the given day."""
        today_iso = (today or date.today()).isoformat()
        sessions = [
            s
            for s in _documents(await self.store.scan_by_prefix(EntityKind.SESSION.prefix))
            if str(s.get("doctor_id", "")) == doctor_id
        ]
        scheduled = SessionStatus.SCHEDULED.value
        return DoctorSummary(
            doctor_id=doctor_id,
            todays_sessions=sum(
                1
                for s in sessions
                if s.get("date") == today_iso
                and s.get("status", scheduled) != SessionStatus.CANCELLED.value
            ),
            upcoming_sessions=sum(
                1
                for s in sessions
                if str(s.get("date", "")) > today_iso and s.get("status", scheduled) == scheduled
            ),
            completed_sessions=_count_status(sessions, SessionStatus.COMPLETED),
            patient_count=len({str(s["patient_id"]) for s in sessions if s.get("patient_id")}),
        )

    async def patient_progress_trend(self, patient_id: str) -> ProgressTrend:
        """The latest entry and how each score moved since the previous one."""
        entries = sorted(
            (p for p in await self.progress.list() if p.patient_id == patient_id),
            key=lambda p: (p.date, p.created_at),
        )
        trend = ProgressTrend(patient_id=patient_id, entries=len(entries))
        if not entries:
            return trend

        latest = entries[-1]
        trend.latest = latest
        if len(entries) > 1:
            previous = entries[-2]
            trend.symptom_score_change = round_one_decimal(
                latest.symptom_score - previous.symptom_score
            )
            trend.energy_level_change = round_one_decimal(
                latest.energy_level - previous.energy_level
            )
            trend.sleep_quality_change = round_one_decimal(
                latest.sleep_quality - previous.sleep_quality
            )
        return trend
