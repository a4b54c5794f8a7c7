"""
Wiring for the clinic services.

Builds the backend named by the configuration and hands one KeyValueStore to
every service. The store is never a module-level singleton: whoever opens
the services owns the store and closes it.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import structlog

from adapters.supabase.backend import SupabaseBackend
from carestore.config import AppConfig, StoreConfig, get_config
from carestore.services.accounts import AccountService
from carestore.services.analytics import AnalyticsService
from carestore.services.identifiers import IdFactory, new_id
from carestore.services.notifications import NotificationService
from carestore.services.orphans import OrphanService
from carestore.services.profiles import DoctorService, PatientService
from carestore.services.progress import ProgressService
from carestore.services.reference_data import ReferenceDataService
from carestore.services.scheduling import SchedulingService
from carestore.services.sessions import SessionService
from carestore.services.status import StatusProbe
from carestore.services.store import InMemoryBackend, KeyValueBackend, KeyValueStore

logger = structlog.get_logger(__name__)


@dataclass
class ClinicServices:
    """Every service bound to the same store."""

    store: KeyValueStore
    accounts: AccountService
    patients: PatientService
    doctors: DoctorService
    sessions: SessionService
    progress: ProgressService
    notifications: NotificationService
    reference_data: ReferenceDataService
    scheduling: SchedulingService
    analytics: AnalyticsService
    orphans: OrphanService
    status: StatusProbe

    @classmethod
    def build(
        cls, store: KeyValueStore, config: AppConfig, id_factory: IdFactory = new_id
    ) -> "ClinicServices":
        compensate = config.store.compensate_partial_writes
        scheduling = SchedulingService(config.scheduling)
        return cls(
            store=store,
            accounts=AccountService(store, id_factory),
            patients=PatientService(store, id_factory, compensate),
            doctors=DoctorService(store, id_factory, compensate),
            sessions=SessionService(store, id_factory, scheduling),
            progress=ProgressService(store, id_factory),
            notifications=NotificationService(store, id_factory),
            reference_data=ReferenceDataService(store),
            scheduling=scheduling,
            analytics=AnalyticsService(store),
            orphans=OrphanService(store),
            status=StatusProbe(store, config.store.probe_key),
        )


def build_backend(config: StoreConfig) -> KeyValueBackend:
    if config.backend == "supabase":
        return SupabaseBackend.from_config(config)
    return InMemoryBackend()


@asynccontextmanager
async def open_services(
    config: AppConfig | None = None,
    backend: KeyValueBackend | None = None,
    id_factory: IdFactory = new_id,
) -> AsyncIterator[ClinicServices]:
    """Open a store and the services over it; the store is closed on exit."""
    config = config or get_config()
    store = KeyValueStore(backend or build_backend(config.store))
    logger.info(
        "clinic_services_opened",
        backend=type(store.backend).__name__,
        environment=config.environment,
    )
    try:
        yield ClinicServices.build(store, config, id_factory)
    finally:
        await store.aclose()
        logger.info("clinic_services_closed")
