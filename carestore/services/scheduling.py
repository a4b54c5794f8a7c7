"""
Appointment slot computation.

Pure in-memory logic over already-fetched sessions: working hours, session
length and buffer time decide the slot grid, and existing sessions on the
same date (optionally for one doctor) knock slots out of it.
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta

from carestore.config import SchedulingConfig
from carestore.domain.models import SessionStatus, SlotSuggestion, TherapySession

MAX_SUGGESTIONS = 10
SUGGESTION_DAYS = 7


def _to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def _appointment(day: str, time: str) -> datetime:
    return datetime.combine(date.fromisoformat(day), datetime.strptime(time, "%H:%M").time())


def _to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _overlaps(start: int, end: int, session: TherapySession) -> bool:
    return start < session.end_minutes and end > session.start_minutes


class SchedulingService:
    """Slot availability and notification timing for therapy sessions."""

    def __init__(self, config: SchedulingConfig | None = None) -> None:
        self.config = config or SchedulingConfig()

    def blocking_sessions(
        self, day: str, sessions: Iterable[TherapySession], doctor_id: str | None = None
    ) -> list[TherapySession]:
        """Sessions on day that occupy time; cancelled ones do not."""
        return [
            s
            for s in sessions
            if s.date == day
            and s.status != SessionStatus.CANCELLED
            and (doctor_id is None or s.doctor_id == doctor_id)
        ]

    def has_conflict(self, candidate: TherapySession, sessions: Iterable[TherapySession]) -> bool:
        """True if candidate overlaps another live session of the same doctor on its date."""
        if candidate.doctor_id is None:
            return False
        others = [
            s
            for s in self.blocking_sessions(candidate.date, sessions, candidate.doctor_id)
            if s.id != candidate.id
        ]
        return any(_overlaps(candidate.start_minutes, candidate.end_minutes, s) for s in others)

    def available_slots(
        self,
        day: str,
        sessions: Iterable[TherapySession],
        duration: int | None = None,
        doctor_id: str | None = None,
    ) -> list[str]:
        """Free start times ("HH:MM") on day, stepping by duration plus buffer."""
        length = duration or self.config.default_duration
        step = length + self.config.buffer_time
        closing = _to_minutes(self.config.working_hours_end)
        blocking = self.blocking_sessions(day, sessions, doctor_id)

        slots: list[str] = []
        start = _to_minutes(self.config.working_hours_start)
        while start + length <= closing:
            if not any(_overlaps(start, start + length, s) for s in blocking):
                slots.append(_to_hhmm(start))
            start += step
        return slots

    def next_available_slot(
        self,
        start_date: date,
        sessions: Iterable[TherapySession],
        duration: int | None = None,
        doctor_id: str | None = None,
    ) -> tuple[str, str] | None:
        """First free (date, time) on a weekday within the lookahead window."""
        sessions = list(sessions)
        for offset in range(self.config.lookahead_days):
            day = start_date + timedelta(days=offset)
            if day.weekday() >= 5:
                continue
            slots = self.available_slots(day.isoformat(), sessions, duration, doctor_id)
            if slots:
                return day.isoformat(), slots[0]
        return None

    def suggest_times(
        self,
        preferred_date: str,
        sessions: Iterable[TherapySession],
        duration: int | None = None,
        doctor_id: str | None = None,
    ) -> list[SlotSuggestion]:
        """
        Rank free slots on the preferred date and the following weekdays.

        The preferred date starts at 100 points and later dates at 80 minus 5
        per day of delay. Mid-morning and mid-afternoon slots earn a bonus.
        """
        sessions = list(sessions)
        suggestions: list[SlotSuggestion] = []

        for slot in self.available_slots(preferred_date, sessions, duration, doctor_id):
            hour = _to_minutes(slot) // 60
            score = 100
            if 9 <= hour <= 11:
                score += 20
            if 14 <= hour <= 16:
                score += 15
            if hour < 9 or hour > 16:
                score -= 10
            suggestions.append(SlotSuggestion(date=preferred_date, time=slot, score=score))

        first = date.fromisoformat(preferred_date)
        for offset in range(1, SUGGESTION_DAYS + 1):
            day = first + timedelta(days=offset)
            if day.weekday() >= 5:
                continue
            for slot in self.available_slots(day.isoformat(), sessions, duration, doctor_id):
                hour = _to_minutes(slot) // 60
                score = 80 - offset * 5
                if 9 <= hour <= 11:
                    score += 15
                if 14 <= hour <= 16:
                    score += 10
                suggestions.append(SlotSuggestion(date=day.isoformat(), time=slot, score=score))

        suggestions.sort(key=lambda s: s.score, reverse=True)
        return suggestions[:MAX_SUGGESTIONS]

    def notification_time(self, day: str, time: str) -> datetime:
        """When the reminder for a session at day/time is due."""
        return _appointment(day, time) - timedelta(hours=self.config.notification_lead_time)

    def should_send_notification(self, day: str, time: str, now: datetime | None = None) -> bool:
        """True between the reminder time and the appointment itself."""
        now = now or datetime.now()
        return self.notification_time(day, time) <= now < _appointment(day, time)
