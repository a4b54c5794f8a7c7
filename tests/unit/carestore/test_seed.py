"""Tests for demo data seeding and service wiring."""

from datetime import date

from carestore.config import AppConfig, StoreConfig
from carestore.domain.models import Role
from carestore.services.clinic import ClinicServices, build_backend, open_services
from carestore.services.seed import PRACTITIONERS, THERAPY_TYPES, seed_demo_data
from carestore.services.store import InMemoryBackend, KeyValueStore


async def test_seed_writes_consistent_demo_data(store: KeyValueStore) -> None:
    assert await seed_demo_data(store, today=date(2025, 6, 2)) is True

    services = ClinicServices.build(store, AppConfig())
    patients = await services.patients.list()
    doctors = await services.doctors.list()

    assert [p.email for p in patients] == ["patient@example.com"]
    assert [d.name for d in doctors] == ["Dr. Sharma"]
    assert len(await services.reference_data.therapy_types()) == len(THERAPY_TYPES)
    assert await services.reference_data.practitioners() == PRACTITIONERS
    assert await services.notifications.unread_count("2") == 3
    for role in (Role.PATIENT, Role.DOCTOR):
        assert (await services.orphans.detect(role)).is_clean

    summary = await services.analytics.compute_summary()
    assert summary.total_sessions == 3
    assert summary.completed_sessions == 1
    assert summary.avg_symptom_score == 6.0
    assert summary.avg_energy_level == 7.0
    assert summary.avg_sleep_quality == 6.0


async def test_seed_is_idempotent(backend: InMemoryBackend, store: KeyValueStore) -> None:
    await seed_demo_data(store)
    keys = backend.keys()

    assert await seed_demo_data(store) is False
    assert backend.keys() == keys


async def test_seed_skips_store_with_any_account(store: KeyValueStore) -> None:
    await store.set("user_x", {"id": "x", "name": "Ops", "email": "ops@x.org", "role": "admin"})

    assert await seed_demo_data(store) is False
    assert await store.get("therapy_types") is None


def test_build_backend_defaults_to_memory() -> None:
    assert isinstance(build_backend(StoreConfig()), InMemoryBackend)


async def test_open_services_shares_one_store() -> None:
    backend = InMemoryBackend()

    async with open_services(AppConfig(), backend=backend) as services:
        created = await services.patients.create({"name": "Asha", "email": "asha@x.org"})
        assert (await services.accounts.get(created.id)).role == Role.PATIENT
        assert services.store.backend is backend
