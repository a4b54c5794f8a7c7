"""
Patient and doctor services: an Account joined with a role profile.

The account (`user_<id>`) and the profile (`patient_<id>` or `doctor_<id>`)
share one identifier; the profile's user_id restates the link. Joins happen
in memory. A profile is only surfaced when its account exists too.

Creating or updating touches two keys with no cross-key atomicity. A failure
on the second write raises PartialWriteFailure naming both keys. On create,
the account can be deleted again (compensate_partial_writes) so no orphan is
left behind; the orphan service catches whatever still slips through.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

import structlog
from pydantic import BaseModel

from carestore.domain.errors import NotFound, PartialWriteFailure, StoreError
from carestore.domain.keys import EntityKind
from carestore.domain.models import (
    Account,
    DoctorCreate,
    DoctorProfile,
    DoctorUpdate,
    DoctorView,
    PatientCreate,
    PatientProfile,
    PatientUpdate,
    PatientView,
    ProfileView,
    Role,
    StoredRecord,
    TherapySession,
)
from carestore.services.identifiers import IdFactory, new_id
from carestore.services.repository import Repository
from carestore.services.store import KeyValueStore, concurrent_reads

logger = structlog.get_logger(__name__)

ProfileT = TypeVar("ProfileT", bound=StoredRecord)
ViewT = TypeVar("ViewT", bound=ProfileView)

ACCOUNT_FIELDS = ("name", "email", "password")
ACCOUNT_EDITABLE_FIELDS = ("name", "email")

InputT = TypeVar("InputT", bound=BaseModel)


def _coerce(model: type[InputT], data: BaseModel | Mapping[str, Any]) -> InputT:
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    return model.model_validate(data)


class ProfileService(Generic[ProfileT, ViewT]):
    """Account-plus-profile CRUD for one role."""

    role: ClassVar[Role]
    profile_kind: ClassVar[EntityKind]
    profile_model: ClassVar[type[StoredRecord]]
    view_model: ClassVar[type[ProfileView]]
    create_model: ClassVar[type[BaseModel]]
    update_model: ClassVar[type[BaseModel]]

    def __init__(
        self,
        store: KeyValueStore,
        id_factory: IdFactory = new_id,
        compensate_partial_writes: bool = True,
    ) -> None:
        self.store = store
        self.id_factory = id_factory
        self.compensate_partial_writes = compensate_partial_writes
        self.accounts: Repository[Account] = Repository(store, EntityKind.ACCOUNT, Account)
        self.profiles: Repository[ProfileT] = Repository(
            store, self.profile_kind, self.profile_model  # type: ignore[arg-type]
        )
        self.logger = logger.bind(component=f"{self.role.value}_service")

    def join(self, account: Account, profile: ProfileT) -> ViewT:
        """Union of both records' fields; the profile's values win on overlap."""
        return self.view_model.model_validate(  # type: ignore[return-value]
            {**account.model_dump(), **profile.model_dump()}
        )

    async def list(self) -> list[ViewT]:
        """Every profile that has a matching account, joined with it."""
        profiles, accounts = await concurrent_reads(self.profiles.list(), self.accounts.list())
        accounts_by_id = {account.id: account for account in accounts}

        views: list[ViewT] = []
        dropped = 0
        for profile in profiles:
            account = accounts_by_id.get(profile.id)
            if account is None:
                dropped += 1
                continue
            views.append(self.join(account, profile))

        if dropped:
            self.logger.debug("profiles_without_account_dropped", count=dropped)
        return views

    async def get(self, record_id: str) -> ViewT | None:
        """The joined view, or None unless both records exist."""
        profile = await self.profiles.get(record_id)
        if profile is None:
            return None
        account = await self.accounts.get(record_id)
        if account is None:
            return None
        return self.join(account, profile)

    async def create(self, data: BaseModel | Mapping[str, Any]) -> ViewT:
        """
        Write an account with this service's role, then its profile.

        Raises:
            StoreError: The account write failed; nothing was written.
            PartialWriteFailure: The profile write failed after the account landed.
        """
        payload = _coerce(self.create_model, data).model_dump()
        record_id = self.id_factory()

        account = await self.accounts.save(
            Account(id=record_id, role=self.role, **{k: payload[k] for k in ACCOUNT_FIELDS})
        )

        profile_fields = {k: v for k, v in payload.items() if k not in ACCOUNT_FIELDS}
        profile = self.profiles.model.model_validate(
            {**profile_fields, "id": record_id, "user_id": record_id}
        )
        try:
            profile = await self.profiles.save(profile)
        except StoreError as e:
            compensated = False
            if self.compensate_partial_writes:
                compensated = await self._compensate(record_id)
            raise PartialWriteFailure(
                [self.accounts.key(record_id)], self.profiles.key(record_id), e, compensated
            ) from e

        self.logger.info(f"{self.role.value}_created", record_id=record_id)
        return self.join(account, profile)

    async def _compensate(self, record_id: str) -> bool:
        try:
            await self.accounts.delete(record_id)
        except StoreError as e:
            self.logger.error("compensating_delete_failed", record_id=record_id, error=str(e))
            return False
        self.logger.warning("account_rolled_back", record_id=record_id)
        return True

    async def update(self, record_id: str, data: BaseModel | Mapping[str, Any]) -> ViewT:
        """
        Field-level merge of a partial update into both records.

        Fields absent from data (or given as None) keep their stored value.

        Raises:
            NotFound: The profile or the account is missing.
            PartialWriteFailure: The account write failed after the profile was rewritten.
        """
        changes = {
            k: v
            for k, v in _coerce(self.update_model, data).model_dump(exclude_unset=True).items()
            if v is not None
        }

        profile = await self.profiles.get(record_id)
        if profile is None:
            raise NotFound(self.profiles.key(record_id))
        account = await self.accounts.get(record_id)
        if account is None:
            raise NotFound(self.accounts.key(record_id))

        account_changes = {k: v for k, v in changes.items() if k in ACCOUNT_EDITABLE_FIELDS}
        updated_profile = await self.profiles.save(self.profiles.apply(profile, changes))
        try:
            updated_account = await self.accounts.save(
                self.accounts.apply(account, account_changes)
            )
        except StoreError as e:
            raise PartialWriteFailure(
                [self.profiles.key(record_id)], self.accounts.key(record_id), e
            ) from e

        self.logger.info(
            f"{self.role.value}_updated", record_id=record_id, fields=sorted(changes)
        )
        return self.join(updated_account, updated_profile)


class PatientService(ProfileService[PatientProfile, PatientView]):
    role = Role.PATIENT
    profile_kind = EntityKind.PATIENT
    profile_model = PatientProfile
    view_model = PatientView
    create_model = PatientCreate
    update_model = PatientUpdate

    def __init__(
        self,
        store: KeyValueStore,
        id_factory: IdFactory = new_id,
        compensate_partial_writes: bool = True,
    ) -> None:
        super().__init__(store, id_factory, compensate_partial_writes)
        self.sessions = Repository(store, EntityKind.SESSION, TherapySession)

    async def list_for_doctor(self, doctor_id: str) -> list[PatientView]:
        """Patients with at least one session booked with doctor_id."""
        patients, sessions = await concurrent_reads(self.list(), self.sessions.list())
        patient_ids = {s.patient_id for s in sessions if s.doctor_id == doctor_id}
        return [p for p in patients if p.id in patient_ids]


class DoctorService(ProfileService[DoctorProfile, DoctorView]):
    role = Role.DOCTOR
    profile_kind = EntityKind.DOCTOR
    profile_model = DoctorProfile
    view_model = DoctorView
    create_model = DoctorCreate
    update_model = DoctorUpdate
