"""
Services over the key-value store.

This package contains the store primitives, the per-entity services that
emulate relations on top of them, and the analytics, orphan detection and
status reporting built from prefix scans.
"""

from .accounts import AccountService
from .analytics import AnalyticsService
from .clinic import ClinicServices, build_backend, open_services
from .identifiers import new_id
from .notifications import NotificationService
from .orphans import OrphanService
from .profiles import DoctorService, PatientService
from .progress import ProgressService
from .reference_data import ReferenceDataService
from .scheduling import SchedulingService
from .seed import seed_demo_data
from .sessions import SessionService
from .status import StatusProbe
from .store import InMemoryBackend, KeyValueBackend, KeyValueStore, Result

__all__ = [
    "AccountService",
    "AnalyticsService",
    "ClinicServices",
    "DoctorService",
    "InMemoryBackend",
    "KeyValueBackend",
    "KeyValueStore",
    "NotificationService",
    "OrphanService",
    "PatientService",
    "ProgressService",
    "ReferenceDataService",
    "Result",
    "SchedulingService",
    "SessionService",
    "StatusProbe",
    "build_backend",
    "new_id",
    "open_services",
    "seed_demo_data",
]
