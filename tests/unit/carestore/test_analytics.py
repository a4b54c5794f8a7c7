"""Tests for analytics summaries."""

from datetime import date

import pytest

from carestore.domain.errors import StoreUnavailable
from carestore.services.analytics import AnalyticsService, mean_score, round_one_decimal
from carestore.services.store import InMemoryBackend, KeyValueStore


def _session(record_id: str, status: str, day: str = "2025-06-02", doctor_id: str = "3") -> dict:
    return {
        "id": record_id,
        "patient_id": f"p{record_id}",
        "doctor_id": doctor_id,
        "therapy_type": "Nasya",
        "date": day,
        "time": "10:00",
        "duration": 30,
        "status": status,
    }


def _progress(record_id: str, symptom: float, energy: float, sleep: float) -> dict:
    return {
        "id": record_id,
        "patient_id": "2",
        "date": f"2025-01-0{record_id}",
        "symptom_score": symptom,
        "energy_level": energy,
        "sleep_quality": sleep,
    }


class TestRounding:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(2.25, 2.3), (2.24, 2.2), (6.0, 6.0), (-0.25, -0.2), (-0.35, -0.3), (-0.26, -0.3)],
    )
    def test_ties_round_toward_positive_infinity(self, value: float, expected: float) -> None:
        assert round_one_decimal(value) == expected

    def test_mean_of_nothing_is_zero(self) -> None:
        assert mean_score([]) == 0.0


class TestComputeSummary:
    async def test_empty_store(self, store: KeyValueStore) -> None:
        summary = await AnalyticsService(store).compute_summary()

        assert summary.total_patients == 0
        assert summary.total_sessions == 0
        assert summary.avg_symptom_score == 0.0
        assert summary.avg_energy_level == 0.0
        assert summary.avg_sleep_quality == 0.0

    async def test_counts_and_means(self, store: KeyValueStore) -> None:
        await store.set("patient_2", {"id": "2", "user_id": "2"})
        await store.set("therapy_session_1", _session("1", "scheduled"))
        await store.set("therapy_session_2", _session("2", "completed"))
        await store.set("therapy_session_3", _session("3", "cancelled"))
        await store.set("progress_1", _progress("1", 7, 6, 5))
        await store.set("progress_2", _progress("2", 6, 7, 6))
        await store.set("progress_3", _progress("3", 5, 8, 7))
        # Accounts do not count as patients
        await store.set("user_9", {"id": "9", "name": "x", "email": "x@y", "role": "patient"})

        summary = await AnalyticsService(store).compute_summary()

        assert summary.total_patients == 1
        assert summary.total_sessions == 3
        assert summary.completed_sessions == 1
        assert summary.upcoming_sessions == 1
        assert summary.cancelled_sessions == 1
        assert summary.avg_symptom_score == 6.0
        assert summary.avg_energy_level == 7.0
        assert summary.avg_sleep_quality == 6.0

    async def test_means_round_to_one_decimal(self, store: KeyValueStore) -> None:
        await store.set("progress_1", _progress("1", 7, 7, 7))
        await store.set("progress_2", _progress("2", 6, 6, 6))
        await store.set("progress_3", _progress("3", 6, 6, 7))

        summary = await AnalyticsService(store).compute_summary()

        assert summary.avg_symptom_score == 6.3
        assert summary.avg_sleep_quality == 6.7

    async def test_scan_failure_propagates(self, backend: InMemoryBackend) -> None:
        backend.failing_keys.add("progress_")
        with pytest.raises(StoreUnavailable):
            await AnalyticsService(KeyValueStore(backend)).compute_summary()

    async def test_records_outside_model_rules_still_count(self, store: KeyValueStore) -> None:
        await store.set("therapy_session_1", {**_session("1", "completed"), "time": "9:00"})
        await store.set("progress_1", _progress("1", 7, 6, 5))
        await store.set("progress_2", _progress("2", 6, 12, 5))

        summary = await AnalyticsService(store).compute_summary()

        assert summary.total_sessions == 1
        assert summary.completed_sessions == 1
        assert summary.avg_energy_level == 9.0
        assert summary.avg_symptom_score == 6.5

    async def test_non_numeric_scores_are_left_out_of_means(self, store: KeyValueStore) -> None:
        await store.set("progress_1", _progress("1", 7, 6, 5))
        await store.set("progress_2", {**_progress("2", 5, 8, 7), "energy_level": "high"})
        await store.set("progress_3", {**_progress("3", 6, 7, 6), "sleep_quality": True})

        summary = await AnalyticsService(store).compute_summary()

        assert summary.avg_symptom_score == 6.0
        assert summary.avg_energy_level == 6.5
        assert summary.avg_sleep_quality == 6.0


class TestDoctorSummary:
    async def test_counts_for_one_doctor(self, store: KeyValueStore) -> None:
        await store.set("therapy_session_1", _session("1", "scheduled", "2025-06-02"))
        await store.set("therapy_session_2", _session("2", "scheduled", "2025-06-05"))
        await store.set("therapy_session_3", _session("3", "completed", "2025-05-30"))
        await store.set("therapy_session_4", _session("4", "scheduled", "2025-06-05", "8"))

        summary = await AnalyticsService(store).doctor_summary("3", today=date(2025, 6, 2))

        assert summary.todays_sessions == 1
        assert summary.upcoming_sessions == 1
        assert summary.completed_sessions == 1
        assert summary.patient_count == 3

    async def test_sessions_with_unusual_times_count(self, store: KeyValueStore) -> None:
        await store.set(
            "therapy_session_1", {**_session("1", "scheduled", "2025-06-02"), "time": "9:00"}
        )

        summary = await AnalyticsService(store).doctor_summary("3", today=date(2025, 6, 2))

        assert summary.todays_sessions == 1


class TestProgressTrend:
    async def test_change_against_previous_entry(self, store: KeyValueStore) -> None:
        await store.set("progress_1", _progress("1", 7, 6, 5))
        await store.set("progress_3", _progress("3", 5, 8, 7.5))

        trend = await AnalyticsService(store).patient_progress_trend("2")

        assert trend.entries == 2
        assert trend.latest is not None and trend.latest.id == "3"
        assert trend.symptom_score_change == -2.0
        assert trend.energy_level_change == 2.0
        assert trend.sleep_quality_change == 2.5

    async def test_no_entries(self, store: KeyValueStore) -> None:
        trend = await AnalyticsService(store).patient_progress_trend("2")
        assert trend.entries == 0
        assert trend.latest is None
        assert trend.symptom_score_change is None

    async def test_negative_tie_rounds_toward_zero(self, store: KeyValueStore) -> None:
        await store.set("progress_1", _progress("1", 7, 6, 5.25))
        await store.set("progress_2", _progress("2", 7, 6, 5.0))

        trend = await AnalyticsService(store).patient_progress_trend("2")

        assert trend.sleep_quality_change == -0.2
