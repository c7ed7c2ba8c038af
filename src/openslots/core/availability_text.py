"""Pure availability text formatting - no I/O dependencies."""

from datetime import date, timedelta

from .slots import DayAvailability

EMAIL_GREETING = "Hi,\n\nI'd like to schedule a meeting with you. Here are my available times:\n\n"
EMAIL_SIGN_OFF = "\n\nPlease let me know what works best for you.\n\nBest regards"


def format_date_label(target: date, today: date | None = None) -> str:
    """Today, Tomorrow, or e.g. Monday, October 19."""
    today = today or date.today()
    if target == today:
        return "Today"
    if target == today + timedelta(days=1):
        return "Tomorrow"
    return f"{target.strftime('%A, %B')} {target.day}"


def format_duration(minutes: int) -> str:
    """Format a block length like 45m, 1h, or 1h 30m."""
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def render_availability_text(days: list[DayAvailability], today: date | None = None) -> str:
    """
    Render days as copy-pasteable availability text.

    Pure function - no I/O. Days without slots are skipped; nothing to show
    renders as an empty string.
    """
    with_slots = [d for d in days if d.slots]
    if not with_slots:
        return ""

    blocks = []
    for day in with_slots:
        lines = [f"{format_date_label(day.date, today)}:"]
        lines.extend(f"• {slot.format()}" for slot in day.slots)
        blocks.append("\n".join(lines) + "\n")

    return "My availability:\n\n" + "\n".join(blocks)


def compose_email_body(availability_text: str, body: str = "") -> str:
    """Insert availability text into an email body."""
    return f"{body or EMAIL_GREETING}{availability_text}{EMAIL_SIGN_OFF}"


def summarize(days: list[DayAvailability]) -> str:
    """Short count line, e.g. 2 days with 9 time slots."""
    day_count = sum(1 for d in days if d.slots)
    slot_count = sum(len(d.slots) for d in days)
    return f"{day_count} days with {slot_count} time slots"
