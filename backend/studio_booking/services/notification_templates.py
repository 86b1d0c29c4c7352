# backend/studio_booking/services/notification_templates.py
"""
Notification templates and the functions that render them into content.

Each renderer takes ORM objects and returns a NotificationContent ready
for a NotificationSender.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..core.config import settings
from ..models.booking import Booking
from ..models.training_session import TrainingSession
from ..models.user import User
from ..schemas.notifications import NotificationContent
from .template_service import TemplateService, format_date, html_to_text


class TemplateRegistry(str, Enum):
    BOOKING_CONFIRMATION = "email/booking_confirmation.html"
    TRAINER_NEW_BOOKING = "email/trainer_new_booking.html"
    BOOKING_CANCELLATION = "email/booking_cancellation.html"
    SESSION_REMINDER = "email/session_reminder.html"
    CUSTOM_MESSAGE = "email/custom_message.html"


@dataclass(frozen=True)
class NotificationTemplate:
    type: str
    email_template: TemplateRegistry
    subject_template: str


BOOKING_CONFIRMED = NotificationTemplate(
    type="booking_confirmed",
    email_template=TemplateRegistry.BOOKING_CONFIRMATION,
    subject_template="Booking Confirmation - Your Training Session is Confirmed!",
)

TRAINER_NEW_BOOKING = NotificationTemplate(
    type="trainer_new_booking",
    email_template=TemplateRegistry.TRAINER_NEW_BOOKING,
    subject_template="New Booking: {{ client_name }} booked {{ session_date }} at {{ start_time }}",
)

BOOKING_CANCELLED = NotificationTemplate(
    type="booking_cancelled",
    email_template=TemplateRegistry.BOOKING_CANCELLATION,
    subject_template="Booking Cancelled - Training Session",
)

SESSION_REMINDER = NotificationTemplate(
    type="session_reminder",
    email_template=TemplateRegistry.SESSION_REMINDER,
    subject_template="Reminder: Your Training Session Starts in {{ lead_label }}!",
)

CUSTOM_MESSAGE = NotificationTemplate(
    type="custom_message",
    email_template=TemplateRegistry.CUSTOM_MESSAGE,
    subject_template="{{ subject }}",
)


def _lead_label(minutes: int) -> str:
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minutes"


def _session_context(session: TrainingSession) -> Dict[str, Any]:
    trainer = session.trainer
    return {
        "session_date": session.session_date,
        "start_time": session.start_time,
        "exercise_label": session.exercise_label,
        "trainer_name": trainer.name if trainer is not None else None,
    }


def render(
    template: NotificationTemplate,
    context: Dict[str, Any],
    templates: Optional[TemplateService] = None,
) -> NotificationContent:
    service = templates or TemplateService()
    subject_context = dict(context)
    if "session_date" in subject_context:
        subject_context["session_date"] = format_date(subject_context["session_date"], "%b %d")
    subject = " ".join(service.render_string(template.subject_template, subject_context).split())
    html = service.render_template(template.email_template.value, context)
    return NotificationContent(subject=subject, html=html, text=html_to_text(html))


def booking_confirmation(
    booking: Booking,
    session: TrainingSession,
    client: User,
    templates: Optional[TemplateService] = None,
) -> NotificationContent:
    context = {
        **_session_context(session),
        "client_name": client.name,
        "group_size": booking.group_size,
        "is_package_booking": bool(booking.is_package_booking),
        "notice_hours": settings.cancellation_notice_hours,
        "cancellation_deadline": booking.cancellation_deadline,
    }
    return render(BOOKING_CONFIRMED, context, templates)


def trainer_new_booking(
    booking: Booking,
    session: TrainingSession,
    client: User,
    templates: Optional[TemplateService] = None,
) -> NotificationContent:
    context = {
        **_session_context(session),
        "client_name": client.name,
        "client_email": client.email,
        "client_phone": client.phone,
        "group_size": booking.group_size,
        "notes": booking.notes,
    }
    return render(TRAINER_NEW_BOOKING, context, templates)


def booking_cancellation(
    booking: Booking,
    session: TrainingSession,
    client: User,
    templates: Optional[TemplateService] = None,
) -> NotificationContent:
    context = {
        **_session_context(session),
        "client_name": client.name,
        "group_size": booking.group_size,
    }
    return render(BOOKING_CANCELLED, context, templates)


def session_reminder(
    booking: Booking,
    session: TrainingSession,
    client: User,
    templates: Optional[TemplateService] = None,
    lead_minutes: Optional[int] = None,
) -> NotificationContent:
    lead = lead_minutes if lead_minutes is not None else settings.reminder_lead_minutes
    context = {
        **_session_context(session),
        "client_name": client.name,
        "group_size": booking.group_size,
        "lead_label": _lead_label(lead),
    }
    return render(SESSION_REMINDER, context, templates)


def custom_message(
    recipient: User,
    subject: str,
    message: str,
    session: Optional[TrainingSession] = None,
    templates: Optional[TemplateService] = None,
) -> NotificationContent:
    context: Dict[str, Any] = {
        "recipient_name": recipient.name,
        "subject": subject,
        "message": message,
        "session_date": session.session_date if session is not None else None,
        "start_time": session.start_time if session is not None else None,
    }
    return render(CUSTOM_MESSAGE, context, templates)
