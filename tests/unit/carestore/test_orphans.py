"""Tests for orphan detection and cleanup of the account/profile join."""

import pytest

from carestore.domain.models import OrphanKind, Role
from carestore.services.orphans import OrphanService, classify
from carestore.services.store import InMemoryBackend, KeyValueStore


async def _account(store: KeyValueStore, record_id: str, role: str) -> None:
    await store.set(
        f"user_{record_id}",
        {"id": record_id, "name": record_id, "email": f"{record_id}@x.org", "role": role},
    )


async def _profile(store: KeyValueStore, prefix: str, record_id: str) -> None:
    await store.set(f"{prefix}{record_id}", {"id": record_id, "user_id": record_id})


def test_classify_splits_by_side() -> None:
    report = classify(Role.PATIENT, {"a", "b"}, {"a", "c"})

    assert report.complete_records == ["a"]
    assert report.accounts_without_profiles == ["b"]
    assert report.profiles_without_accounts == ["c"]
    assert not report.is_clean
    assert report.orphans() == [
        (OrphanKind.PROFILE_WITHOUT_ACCOUNT, "c"),
        (OrphanKind.ACCOUNT_WITHOUT_PROFILE, "b"),
    ]


class TestDetect:
    async def test_detect_patient_orphans(self, store: KeyValueStore) -> None:
        await _account(store, "a", "patient")
        await _account(store, "b", "patient")
        await _profile(store, "patient_", "a")
        await _profile(store, "patient_", "c")

        report = await OrphanService(store).detect(Role.PATIENT)

        assert report.complete_records == ["a"]
        assert report.accounts_without_profiles == ["b"]
        assert report.profiles_without_accounts == ["c"]

    async def test_accounts_of_other_roles_are_ignored(self, store: KeyValueStore) -> None:
        await _account(store, "1", "admin")
        await _account(store, "3", "doctor")
        await _profile(store, "doctor_", "3")

        service = OrphanService(store)
        assert (await service.detect(Role.PATIENT)).is_clean
        assert (await service.detect(Role.DOCTOR)).complete_records == ["3"]

    async def test_admin_has_no_profiles(self, store: KeyValueStore) -> None:
        with pytest.raises(ValueError, match="no profile"):
            await OrphanService(store).detect(Role.ADMIN)


class TestCleanup:
    async def test_cleanup_converges(self, store: KeyValueStore) -> None:
        await _account(store, "a", "patient")
        await _account(store, "b", "patient")
        await _profile(store, "patient_", "a")
        await _profile(store, "patient_", "c")

        result = await OrphanService(store).cleanup(Role.PATIENT)

        assert result.deleted == 2
        assert result.failed == []
        assert result.converged
        assert result.remaining.complete_records == ["a"]
        assert await store.get("user_b") is None
        assert await store.get("patient_c") is None
        assert await store.get("user_a") is not None

    async def test_failed_delete_does_not_stop_the_rest(self, backend: InMemoryBackend) -> None:
        store = KeyValueStore(backend)
        await _account(store, "b", "doctor")
        await _profile(store, "doctor_", "c")
        await _profile(store, "doctor_", "d")
        backend.failing_keys.add("doctor_c")

        result = await OrphanService(store).cleanup(Role.DOCTOR)

        assert result.deleted == 2
        assert result.failed == ["doctor_c"]
        assert not result.converged
        assert result.remaining.profiles_without_accounts == ["c"]
        assert ("delete", "doctor_d") in backend.calls
        assert ("delete", "user_b") in backend.calls

    async def test_clean_store_deletes_nothing(self, store: KeyValueStore) -> None:
        result = await OrphanService(store).cleanup(Role.PATIENT)
        assert result.deleted == 0
        assert result.converged
