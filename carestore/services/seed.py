"""
Demo data for a fresh store.

Writes one admin, one patient, one doctor, a few sessions, progress entries
and notifications, plus the reference lists. Does nothing when any account
already exists.
"""

from datetime import date, timedelta

import structlog

from carestore.domain.keys import EntityKind
from carestore.domain.models import (
    Account,
    DoctorProfile,
    Notification,
    NotificationType,
    PatientProfile,
    ProgressEntry,
    Role,
    SessionStatus,
    StoredRecord,
    TherapySession,
    TherapyType,
)
from carestore.services.reference_data import ReferenceDataService
from carestore.services.store import KeyValueStore

logger = structlog.get_logger(__name__)

THERAPY_TYPES = [
    TherapyType(
        name="Abhyanga (Oil Massage)",
        duration=60,
        description="Full body oil massage to improve circulation and reduce stress",
    ),
    TherapyType(
        name="Swedana (Steam Therapy)",
        duration=45,
        description="Herbal steam therapy for detoxification and muscle relaxation",
    ),
    TherapyType(
        name="Shirodhara (Oil Pouring)",
        duration=90,
        description="Continuous oil pouring on forehead for mental relaxation",
    ),
    TherapyType(
        name="Panchakarma Detox", duration=120, description="Complete detoxification program"
    ),
    TherapyType(
        name="Nasya (Nasal Therapy)",
        duration=30,
        description="Nasal administration of medicated oils",
    ),
    TherapyType(
        name="Udvartana (Herbal Powder Massage)",
        duration=75,
        description="Dry powder massage for weight management and skin health",
    ),
]

PRACTITIONERS = ["Dr. Sharma", "Dr. Patel", "Dr. Kumar", "Dr. Gupta", "Dr. Singh"]


def demo_records(today: date) -> list[StoredRecord]:
    """Every identifier-scoped demo record, relative to today."""

    def day(offset: int) -> str:
        return (today + timedelta(days=offset)).isoformat()

    return [
        Account(
            id="1",
            name="Dr. Ayurveda Admin",
            email="admin@panchakarma.com",
            role=Role.ADMIN,
            password="admin123",
        ),
        Account(
            id="2",
            name="John Patient",
            email="patient@example.com",
            role=Role.PATIENT,
            password="patient123",
        ),
        PatientProfile(
            id="2",
            user_id="2",
            age=45,
            phone="+1-555-0123",
            address="123 Wellness St, Health City, HC 12345",
            medical_history="Chronic joint pain, stress-related disorders, digestive issues.",
        ),
        Account(
            id="3",
            name="Dr. Sharma",
            email="sharma@panchakarma.com",
            role=Role.DOCTOR,
            password="doctor123",
        ),
        DoctorProfile(
            id="3",
            user_id="3",
            phone="+1-555-0124",
            specialization="Panchakarma Specialist",
            qualification="BAMS, MD (Panchakarma)",
            experience=15,
        ),
        TherapySession(
            id="1",
            patient_id="2",
            doctor_id="3",
            therapy_type="Abhyanga (Oil Massage)",
            date=day(1),
            time="09:00",
            duration=60,
            practitioner="Dr. Sharma",
            pre_procedure_instructions=[
                "Fast for 2 hours before treatment",
                "Avoid cold drinks",
                "Wear comfortable clothing",
                "Arrive 15 minutes early",
            ],
            post_procedure_instructions=[
                "Rest for 30 minutes after treatment",
                "Drink warm water",
                "Avoid cold exposure for 2 hours",
                "Take prescribed herbal medicine",
            ],
        ),
        TherapySession(
            id="2",
            patient_id="2",
            doctor_id="3",
            therapy_type="Swedana (Steam Therapy)",
            date=day(-1),
            time="10:00",
            duration=45,
            status=SessionStatus.COMPLETED,
            practitioner="Dr. Sharma",
            notes="Patient responded well to treatment",
            pre_procedure_instructions=["Light breakfast only", "Remove all jewelry"],
            post_procedure_instructions=["Cool down gradually", "Drink plenty of water"],
        ),
        TherapySession(
            id="3",
            patient_id="2",
            doctor_id="3",
            therapy_type="Shirodhara (Oil Pouring)",
            date=day(2),
            time="11:00",
            duration=90,
            practitioner="Dr. Sharma",
            pre_procedure_instructions=["Wash hair before treatment"],
            post_procedure_instructions=["Do not wash hair for 24 hours", "Keep head covered"],
        ),
        ProgressEntry(
            id="1",
            patient_id="2",
            date=day(-7),
            symptom_score=7,
            energy_level=6,
            sleep_quality=5,
            notes="Feeling better overall",
            feedback="Treatment is helping with pain management",
        ),
        ProgressEntry(
            id="2",
            patient_id="2",
            date=day(-5),
            symptom_score=6,
            energy_level=7,
            sleep_quality=6,
            notes="Improved sleep quality",
            feedback="Less joint stiffness in the morning",
        ),
        ProgressEntry(
            id="3",
            patient_id="2",
            date=day(-3),
            symptom_score=5,
            energy_level=8,
            sleep_quality=7,
            notes="Significant improvement",
            feedback="Feeling more energetic and positive",
        ),
        Notification(
            id="1",
            patient_id="2",
            type=NotificationType.PRE_PROCEDURE,
            title="Tomorrow's Abhyanga Treatment",
            message="Please fast for 2 hours before your 9:00 AM appointment.",
            date=day(0),
            urgent=True,
        ),
        Notification(
            id="2",
            patient_id="2",
            type=NotificationType.POST_PROCEDURE,
            title="Post-Treatment Care",
            message="Rest for 30 minutes and drink warm water. Avoid cold exposure.",
            date=day(-1),
            read=True,
        ),
        Notification(
            id="3",
            patient_id="2",
            type=NotificationType.APPOINTMENT,
            title="Upcoming Shirodhara Session",
            message="Your Shirodhara treatment is scheduled at 11:00 AM with Dr. Sharma.",
            date=day(0),
        ),
        Notification(
            id="4",
            patient_id="2",
            type=NotificationType.REMINDER,
            title="Daily Progress Update",
            message="Please update your daily symptoms and energy levels.",
            date=day(0),
        ),
    ]


_KINDS: dict[type[StoredRecord], EntityKind] = {
    Account: EntityKind.ACCOUNT,
    PatientProfile: EntityKind.PATIENT,
    DoctorProfile: EntityKind.DOCTOR,
    TherapySession: EntityKind.SESSION,
    ProgressEntry: EntityKind.PROGRESS,
    Notification: EntityKind.NOTIFICATION,
}


async def seed_demo_data(store: KeyValueStore, today: date | None = None) -> bool:
    """Write the demo data set. Returns False when accounts already exist."""
    if await store.scan_by_prefix(EntityKind.ACCOUNT.prefix):
        logger.info("demo_data_already_present")
        return False

    records = demo_records(today or date.today())
    for record in records:
        await store.set(str(_KINDS[type(record)].key(record.id)), record.to_document())

    reference = ReferenceDataService(store)
    await reference.set_therapy_types(THERAPY_TYPES)
    await reference.set_practitioners(PRACTITIONERS)

    logger.info("demo_data_seeded", records=len(records))
    return True
