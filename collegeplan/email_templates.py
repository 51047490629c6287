"""
MJML Email Templates
Todo reminder emails: MJML for the HTML part plus a plain-text alternative
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional, Sequence

from .utils.sanitization import sanitize_string

# Neutral indigo scheme for scheduled reminders, red/orange for urgent ones
THEME = {
    "primary": "#6366f1",
    "primary_dark": "#4f46e5",
    "urgent": "#dc2626",
    "urgent_dark": "#b91c1c",
    "urgent_light": "#fef2f2",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "row_bg": "#f9fafb",
    "text_primary": "#0f172a",
    "text_secondary": "#1f2937",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
}

FONT_STACK = "-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif"

SECONDS_PER_DAY = 24 * 60 * 60


class ReminderMode(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    URGENT = "urgent"

    @property
    def horizon_days(self) -> int:
        return {"monthly": 40, "weekly": 7, "urgent": 3}[self.value]


@dataclass(frozen=True)
class Urgency:
    label: str
    color: str


OVERDUE = Urgency("overdue", "#dc2626")
DUE_TOMORROW = Urgency("due tomorrow", "#dc2626")
DUE_SOON = Urgency("due soon", "#ea580c")
DUE_THIS_WEEK = Urgency("due this week", "#f59e0b")


@dataclass(frozen=True)
class ReminderTask:
    """The part of a todo the reminder email needs"""

    title: str
    due_date: Optional[date]


@dataclass(frozen=True)
class RenderedEmail:
    html: str
    text: str


def days_until(due_date: date, now: datetime) -> int:
    """Whole days left until the due date (midnight UTC), rounded up"""
    due_at = datetime.combine(due_date, time.min, tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.ceil((due_at - now).total_seconds() / SECONDS_PER_DAY)


def urgency_for(days_left: Optional[int]) -> Optional[Urgency]:
    if days_left is None:
        return None
    if days_left <= 0:
        return OVERDUE
    if days_left == 1:
        return DUE_TOMORROW
    if days_left <= 3:
        return DUE_SOON
    if days_left <= 7:
        return DUE_THIS_WEEK
    return None


def sort_tasks(tasks: Sequence[ReminderTask]) -> list[ReminderTask]:
    """Sort by due date ascending, undated tasks last"""
    return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or date.min))


def format_due_date(due_date: Optional[date]) -> str:
    if due_date is None:
        return "No due date"
    return due_date.strftime("%B %d, %Y")


def build_subject(owner_name: str, task_count: int, mode: Optional[ReminderMode]) -> str:
    noun = "task" if task_count == 1 else "tasks"
    if mode == ReminderMode.MONTHLY:
        return f"📅 Monthly to-do reminder - {owner_name} has {task_count} {noun} coming up"
    if mode == ReminderMode.URGENT:
        return f"🚨 Urgent reminder - {owner_name} has {task_count} {noun} due very soon!"
    if mode == ReminderMode.WEEKLY:
        return f"⏰ To-do reminder - {owner_name} has {task_count} {noun} due this week"
    return f"⏰ To-do reminder - {owner_name} has {task_count} pending {noun}"


def _header_title(mode: Optional[ReminderMode]) -> str:
    if mode == ReminderMode.MONTHLY:
        return "📅 Monthly To-do Reminder"
    if mode == ReminderMode.URGENT:
        return "🚨 Urgent To-do Reminder"
    return "⏰ To-do Reminder"


def _intro_text(owner_name: str, mode: Optional[ReminderMode]) -> str:
    if mode == ReminderMode.URGENT:
        return (
            f"Urgent: {owner_name} has the following tasks due within the next "
            f"{mode.horizon_days} days. Please take care of them right away!"
        )
    if mode is not None:
        return (
            f"Here are the tasks {owner_name} needs to complete in the next "
            f"{mode.horizon_days} days:"
        )
    return f"Here are the tasks {owner_name} still has pending:"


def _closing_text(mode: Optional[ReminderMode]) -> str:
    if mode == ReminderMode.URGENT:
        return "⚡ Please finish these tasks as soon as possible so no deadline is missed."
    return "Please make sure these tasks are completed on time."


def _task_rows_mjml(tasks: Sequence[ReminderTask], now: datetime, urgent: bool) -> str:
    rows = []
    for task in tasks:
        days_left = days_until(task.due_date, now) if task.due_date else None
        urgency = urgency_for(days_left)
        row_bg = THEME["urgent_light"] if urgent and urgency in (OVERDUE, DUE_TOMORROW) else ""
        tag = (
            f'<span style="color: {urgency.color}; font-weight: 600;">{urgency.label}</span>'
            if urgency
            else ""
        )
        rows.append(
            f"""
            <tr style="background: {row_bg};">
              <td style="padding: 12px; border-bottom: 1px solid {THEME['border']};"><strong>{sanitize_string(task.title)}</strong></td>
              <td style="padding: 12px; border-bottom: 1px solid {THEME['border']}; text-align: center;">{format_due_date(task.due_date)}</td>
              <td style="padding: 12px; border-bottom: 1px solid {THEME['border']}; text-align: center;">{tag}</td>
            </tr>"""
        )
    return "".join(rows)


def todo_reminder_template(
    owner_name: str,
    tasks: Sequence[ReminderTask],
    mode: Optional[ReminderMode],
    now: datetime,
) -> str:
    """Todo reminder MJML template. Expects tasks already sorted."""
    urgent = mode == ReminderMode.URGENT
    accent = THEME["urgent"] if urgent else THEME["primary"]
    header_bg = THEME["urgent_dark"] if urgent else THEME["primary_dark"]
    safe_name = sanitize_string(owner_name)
    header_title = _header_title(mode)

    header_subtitle = ""
    if urgent:
        header_subtitle = """
            <mj-text align="center" color="#ffffff" font-size="14px" padding="10px 0 0 0">
              Please review and act now
            </mj-text>"""

    urgent_banner = ""
    if urgent:
        urgent_banner = f"""
            <mj-text align="center" color="{THEME['urgent']}" font-size="16px" font-weight="600"
              container-background-color="{THEME['urgent_light']}" padding="16px">
              ⚠️ These tasks are about to be due. Please act on them immediately!
            </mj-text>"""

    intro_style = f'color="{THEME["urgent"]}" font-weight="600"' if urgent else ""

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{header_title}</mj-title>
        <mj-preview>{safe_name} has {len(tasks)} pending tasks</mj-preview>
        <mj-attributes>
          <mj-all font-family="{FONT_STACK}" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{header_bg}" padding="30px 20px">
          <mj-column>
            <mj-text align="center" color="#ffffff" font-size="24px" font-weight="600" padding="0">
              {header_title}
            </mj-text>{header_subtitle}
          </mj-column>
        </mj-section>

        <mj-section background-color="{THEME['card_bg']}" padding="30px 30px 10px 30px">
          <mj-column>
            <mj-text padding="0 0 12px 0">Dear parent/student,</mj-text>
            <mj-text {intro_style} padding="0 0 16px 0">{_intro_text(safe_name, mode)}</mj-text>{urgent_banner}
            <mj-table container-background-color="{THEME['row_bg']}" padding="20px 0">
              <tr style="background: {accent}; color: #ffffff;">
                <th style="padding: 12px; text-align: left;">Task</th>
                <th style="padding: 12px; text-align: center;">Due date</th>
                <th style="padding: 12px; text-align: center;">Status</th>
              </tr>{_task_rows_mjml(tasks, now, urgent)}
            </mj-table>
            <mj-text>{_closing_text(mode)} If you have any questions, feel free to contact us.</mj-text>
            <mj-text padding="0 0 20px 0">Best of luck with your studies!<br/><strong>The DreamPlane Team</strong></mj-text>
          </mj-column>
        </mj-section>

        <mj-section padding="20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="0">
              This email was sent automatically. Please do not reply.
            </mj-text>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="8px 0 0 0">
              © {now.year} DreamPlane Education. All rights reserved.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def todo_reminder_text(
    owner_name: str,
    tasks: Sequence[ReminderTask],
    mode: Optional[ReminderMode],
    now: datetime,
) -> str:
    """Plain-text version of the todo reminder for clients without HTML support"""
    lines = []
    for task in tasks:
        days_left = days_until(task.due_date, now) if task.due_date else None
        urgency = urgency_for(days_left)
        tag = f" [{urgency.label}]" if urgency else ""
        lines.append(f"• {task.title} (due: {format_due_date(task.due_date)}){tag}")

    banner = ""
    if mode == ReminderMode.URGENT:
        banner = "⚠️ These tasks are about to be due. Please act on them immediately!\n\n"

    return f"""{_header_title(mode)}

Dear parent/student,

{_intro_text(owner_name, mode)}

{banner}{chr(10).join(lines)}

{_closing_text(mode)} If you have any questions, feel free to contact us.

Best of luck with your studies!
The DreamPlane Team

---
This email was sent automatically. Please do not reply.
© {now.year} DreamPlane Education. All rights reserved."""
