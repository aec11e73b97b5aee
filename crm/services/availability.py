"""Weekly time-slot generation for an agent's calendar.

The stored schedule looks like::

    {
        "monday": {"enabled": true, "slots": ["09:00", "10:00"]},
        "exceptions": {"2025-05-01": {"available": false}}
    }

A date exception wins over the weekday entry; with neither, the default
hourly 09:00-17:00 slots apply. An appointment blocks every slot starting
within one hour of its start time.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crm.models.agent import Agent
from crm.models.appointment import Appointment, AppointmentStatus
from crm.models.base import load_json

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7
APPOINTMENT_DURATION = timedelta(hours=1)
DEFAULT_SLOTS = [f"{hour:02d}:00" for hour in range(9, 18)]


class AgentNotFound(Exception):
    pass


def parse_time(value: str) -> time:
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time: {value}")


def _is_booked(day: date, slot: str, booked_times: list[time]) -> bool:
    slot_at = datetime.combine(day, parse_time(slot))
    for start in booked_times:
        start_at = datetime.combine(day, start)
        if start_at <= slot_at < start_at + APPOINTMENT_DURATION:
            return True
    return False


def build_week_slots(
    schedule: dict,
    start: date,
    booked: list[tuple[date, str]],
) -> dict[str, list[dict]]:
    """Slots for the seven days from ``start``, keyed by ISO date."""
    exceptions = schedule.get("exceptions") or {}

    booked_by_day: dict[date, list[time]] = {}
    for day, raw_time in booked:
        booked_by_day.setdefault(day, []).append(parse_time(raw_time))

    week: dict[str, list[dict]] = {}
    for offset in range(DAYS_IN_WEEK):
        day = start + timedelta(days=offset)
        key = day.isoformat()
        day_config = schedule.get(day.strftime("%A").lower()) or {}
        exception = exceptions.get(key)

        if exception and exception.get("available") is False:
            week[key] = []
            continue
        if day_config.get("enabled") is False and not exception:
            week[key] = []
            continue

        slots = (exception or {}).get("slots") or day_config.get("slots") or DEFAULT_SLOTS
        taken = booked_by_day.get(day, [])
        week[key] = [
            {"date": key, "time": slot, "available": not _is_booked(day, slot, taken)}
            for slot in slots
        ]
    return week


async def get_agent_availability(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    agent_id: uuid.UUID,
    start: date,
) -> dict[str, list[dict]]:
    """Availability of one agent for the week starting at ``start``.

    Raises AgentNotFound when the agent is not part of the tenant. Database
    failures degrade to the default schedule with no bookings.
    """
    try:
        result = await session.execute(
            select(Agent).where(Agent.id == agent_id, Agent.tenant_id == tenant_id)
        )
        agent = result.scalars().first()
    except SQLAlchemyError:
        logger.warning("Availability lookup failed for agent %s; using defaults", agent_id, exc_info=True)
        return build_week_slots({}, start, [])

    if agent is None:
        raise AgentNotFound(str(agent_id))

    schedule = load_json(agent.availability, {})
    if not isinstance(schedule, dict):
        schedule = {}

    end = start + timedelta(days=DAYS_IN_WEEK - 1)
    try:
        result = await session.execute(
            select(Appointment.appointment_date, Appointment.appointment_time).where(
                Appointment.tenant_id == tenant_id,
                Appointment.agent_id == agent_id,
                Appointment.appointment_date >= start,
                Appointment.appointment_date <= end,
                Appointment.status != AppointmentStatus.CANCELLED,
            )
        )
        booked = [(row[0], row[1]) for row in result.all()]
    except SQLAlchemyError:
        logger.warning("Appointment lookup failed for agent %s; ignoring bookings", agent_id, exc_info=True)
        booked = []

    return build_week_slots(schedule, start, booked)
