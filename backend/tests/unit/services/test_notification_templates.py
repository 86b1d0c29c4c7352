"""Rendered notification content."""

from datetime import date

from studio_booking.services import notification_templates


def test_reminder_subject_and_details(unit_db, trainer, client_user, training_session_factory, booking_factory):
    session = training_session_factory(unit_db, trainer, date(2024, 6, 10), "18:00")
    booking = booking_factory(unit_db, session, client_user, group_size=3)

    content = notification_templates.session_reminder(booking, session, client_user)

    assert content.subject == "Reminder: Your Training Session Starts in 2 hours!"
    assert "Casey Client" in content.html
    assert "18:00" in content.html
    assert "<" not in content.text


def test_trainer_subject_uses_short_date(unit_db, trainer, client_user, training_session_factory, booking_factory):
    session = training_session_factory(unit_db, trainer, date(2024, 6, 10), "09:30")
    booking = booking_factory(unit_db, session, client_user)

    content = notification_templates.trainer_new_booking(booking, session, client_user)

    assert content.subject == "New Booking: Casey Client booked Jun 10 at 09:30"


def test_lead_label():
    assert notification_templates._lead_label(60) == "1 hour"
    assert notification_templates._lead_label(120) == "2 hours"
    assert notification_templates._lead_label(90) == "90 minutes"
