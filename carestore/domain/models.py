"""
Domain models for the clinic record store.

Records are the documents stored under one key each. Views are the joined
shapes the profile services return. Reports are what the analytics,
orphan-detection and status services produce. All of them use Pydantic for
validation and are framework-agnostic.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def utc_now() -> datetime:
    return datetime.now(UTC)


class Role(str, Enum):
    """Account roles."""

    ADMIN = "admin"
    PATIENT = "patient"
    DOCTOR = "doctor"


class SessionStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    PRE_PROCEDURE = "pre-procedure"
    POST_PROCEDURE = "post-procedure"
    APPOINTMENT = "appointment"
    REMINDER = "reminder"


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


class StoredRecord(BaseModel):
    """Fields every identifier-scoped record carries."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def editable_fields(cls) -> set[str]:
        """Fields a merge-update may change."""
        return set(cls.model_fields) - {"id", "user_id", "created_at", "updated_at"}

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible wire document."""
        return self.model_dump(mode="json")


class Account(StoredRecord):
    """Identity and credential (`user_<id>`)."""

    name: str
    email: str
    role: Role
    password: str = Field(default="", repr=False)


class PatientProfile(StoredRecord):
    """Medical and contact attributes (`patient_<id>`), 1:1 with an Account."""

    user_id: str
    age: int = Field(default=0, ge=0, le=150)
    phone: str = ""
    address: str = ""
    medical_history: str = Field(
        default="", validation_alias=AliasChoices("medical_history", "medicalHistory")
    )


class DoctorProfile(StoredRecord):
    """Professional attributes (`doctor_<id>`), 1:1 with an Account."""

    user_id: str
    phone: str = ""
    specialization: str = ""
    qualification: str = ""
    experience: int = Field(default=0, ge=0)


class TherapySession(StoredRecord):
    """A scheduled treatment (`therapy_session_<id>`)."""

    patient_id: str
    doctor_id: str | None = None
    therapy_type: str
    date: str = Field(pattern=DATE_PATTERN)
    time: str = Field(pattern=TIME_PATTERN)
    duration: int = Field(gt=0, description="Length in minutes")
    status: SessionStatus = SessionStatus.SCHEDULED
    practitioner: str = ""
    notes: str = ""
    pre_procedure_instructions: list[str] = Field(default_factory=list)
    post_procedure_instructions: list[str] = Field(default_factory=list)

    @property
    def start_minutes(self) -> int:
        hours, minutes = self.time.split(":")
        return int(hours) * 60 + int(minutes)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration


class ProgressEntry(StoredRecord):
    """Self-reported scores for one day (`progress_<id>`)."""

    patient_id: str
    date: str = Field(pattern=DATE_PATTERN)
    symptom_score: float = Field(ge=0, le=10)
    energy_level: float = Field(ge=0, le=10)
    sleep_quality: float = Field(ge=0, le=10)
    notes: str = ""
    feedback: str = ""


class Notification(StoredRecord):
    """A message addressed to a patient (`notification_<id>`)."""

    patient_id: str
    type: NotificationType
    title: str
    message: str
    date: str = Field(pattern=DATE_PATTERN)
    read: bool = False
    urgent: bool = False


class TherapyType(BaseModel):
    """Reference entry stored in the `therapy_types` list."""

    name: str
    duration: int = Field(gt=0)
    description: str = ""


# ---------------------------------------------------------------------------
# Profile inputs
# ---------------------------------------------------------------------------


class AccountCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(default="", repr=False)
    role: Role = Role.ADMIN

    @field_validator("role")
    def admin_only(cls, v):
        if v != Role.ADMIN:
            raise ValueError("patient and doctor accounts are created together with their profile")
        return v


class PatientCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(default="", repr=False)
    age: int = Field(default=0, ge=0, le=150)
    phone: str = ""
    address: str = ""
    medical_history: str = Field(
        default="", validation_alias=AliasChoices("medical_history", "medicalHistory")
    )


class PatientUpdate(BaseModel):
    """Partial patient update; only fields that were set are applied."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    email: str | None = None
    age: int | None = Field(default=None, ge=0, le=150)
    phone: str | None = None
    address: str | None = None
    medical_history: str | None = Field(
        default=None, validation_alias=AliasChoices("medical_history", "medicalHistory")
    )


class DoctorCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(default="", repr=False)
    phone: str = ""
    specialization: str = ""
    qualification: str = ""
    experience: int = Field(default=0, ge=0)


class DoctorUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    specialization: str | None = None
    qualification: str | None = None
    experience: int | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Joined views
# ---------------------------------------------------------------------------


class ProfileView(BaseModel):
    """Account fields merged with profile fields; the profile wins on overlap."""

    id: str
    user_id: str
    name: str
    email: str
    role: Role
    password: str = Field(default="", repr=False, exclude=True)
    created_at: datetime
    updated_at: datetime


class PatientView(ProfileView):
    age: int = 0
    phone: str = ""
    address: str = ""
    medical_history: str = ""


class DoctorView(ProfileView):
    phone: str = ""
    specialization: str = ""
    qualification: str = ""
    experience: int = 0


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class AnalyticsSummary(BaseModel):
    """Clinic-wide counts and score means."""

    total_patients: int = 0
    total_sessions: int = 0
    completed_sessions: int = 0
    upcoming_sessions: int = 0
    cancelled_sessions: int = 0
    avg_symptom_score: float = 0.0
    avg_energy_level: float = 0.0
    avg_sleep_quality: float = 0.0
    generated_at: datetime = Field(default_factory=utc_now)


class DoctorSummary(BaseModel):
    doctor_id: str
    todays_sessions: int = 0
    upcoming_sessions: int = 0
    completed_sessions: int = 0
    patient_count: int = 0


class ProgressTrend(BaseModel):
    """Latest progress entry and its change against the one before."""

    patient_id: str
    entries: int
    latest: ProgressEntry | None = None
    symptom_score_change: float | None = None
    energy_level_change: float | None = None
    sleep_quality_change: float | None = None


class OrphanKind(str, Enum):
    ACCOUNT_WITHOUT_PROFILE = "account_without_profile"
    PROFILE_WITHOUT_ACCOUNT = "profile_without_account"


class OrphanReport(BaseModel):
    """Identifiers of one role split by whether the account/profile join holds."""

    role: Role
    accounts_without_profiles: list[str] = Field(default_factory=list)
    profiles_without_accounts: list[str] = Field(default_factory=list)
    complete_records: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_clean(self) -> bool:
        return not self.accounts_without_profiles and not self.profiles_without_accounts

    def orphans(self) -> list[tuple[OrphanKind, str]]:
        return [(OrphanKind.PROFILE_WITHOUT_ACCOUNT, i) for i in self.profiles_without_accounts] + [
            (OrphanKind.ACCOUNT_WITHOUT_PROFILE, i) for i in self.accounts_without_profiles
        ]


class CleanupReport(BaseModel):
    role: Role
    deleted: int = 0
    failed: list[str] = Field(default_factory=list, description="Keys that could not be deleted")
    remaining: OrphanReport

    @computed_field  # type: ignore[prop-decorator]
    @property
    def converged(self) -> bool:
        return self.remaining.is_clean


class ConnectionStatus(BaseModel):
    """Best-effort reachability report for the remote store."""

    reachable: bool
    table_present: bool
    detail: str
    error_kind: str | None = None
    latency_ms: float = Field(default=0.0, ge=0.0)
    checked_at: datetime = Field(default_factory=utc_now)


class SlotSuggestion(BaseModel):
    date: str
    time: str
    score: int
