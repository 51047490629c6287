from datetime import date, datetime, timezone

import pytest

from collegeplan.email_templates import (
    DUE_SOON,
    DUE_THIS_WEEK,
    DUE_TOMORROW,
    OVERDUE,
    ReminderMode,
    ReminderTask,
    build_subject,
    days_until,
    format_due_date,
    sort_tasks,
    todo_reminder_text,
    urgency_for,
)

from .conftest import FIXED_NOW, days_from_now


@pytest.mark.parametrize(
    "days_left, expected",
    [
        (-3, OVERDUE),
        (0, OVERDUE),
        (1, DUE_TOMORROW),
        (2, DUE_SOON),
        (3, DUE_SOON),
        (4, DUE_THIS_WEEK),
        (7, DUE_THIS_WEEK),
        (8, None),
        (None, None),
    ],
)
def test_urgency_for(days_left, expected):
    assert urgency_for(days_left) == expected


def test_days_until_rounds_up_partial_days():
    # 10:00 UTC on the 10th: the 12th is 1.58 days away
    assert days_until(date(2026, 3, 12), FIXED_NOW) == 2
    assert days_until(date(2026, 3, 11), FIXED_NOW) == 1
    assert days_until(date(2026, 3, 10), FIXED_NOW) == 0
    assert days_until(date(2026, 3, 9), FIXED_NOW) == -1


def test_days_until_treats_naive_now_as_utc():
    naive = datetime(2026, 3, 10, 10, 0)
    assert days_until(date(2026, 3, 12), naive) == days_until(date(2026, 3, 12), FIXED_NOW)


def test_days_until_at_midnight_is_exact():
    midnight = datetime(2026, 3, 10, tzinfo=timezone.utc)
    assert days_until(date(2026, 3, 17), midnight) == 7


def test_sort_tasks_puts_undated_last():
    tasks = [
        ReminderTask("Undated", None),
        ReminderTask("Later", date(2026, 4, 1)),
        ReminderTask("Sooner", date(2026, 3, 11)),
    ]
    assert [t.title for t in sort_tasks(tasks)] == ["Sooner", "Later", "Undated"]


def test_format_due_date():
    assert format_due_date(date(2026, 3, 5)) == "March 05, 2026"
    assert format_due_date(None) == "No due date"


@pytest.mark.parametrize("mode", [ReminderMode.MONTHLY, ReminderMode.WEEKLY, ReminderMode.URGENT, None])
def test_subject_names_owner_and_count(mode):
    subject = build_subject("Mia", 3, mode)
    assert "Mia" in subject
    assert "3" in subject


def test_urgent_subject_differs_from_weekly():
    assert build_subject("Mia", 1, ReminderMode.URGENT) != build_subject("Mia", 1, ReminderMode.WEEKLY)


def test_text_body_labels_each_task():
    tasks = sort_tasks(
        [
            ReminderTask("Far away", days_from_now(10)),
            ReminderTask("Today", days_from_now(0)),
            ReminderTask("Tomorrow", days_from_now(1)),
        ]
    )
    text = todo_reminder_text("Mia", tasks, ReminderMode.MONTHLY, FIXED_NOW)
    lines = [line for line in text.splitlines() if line.startswith("•")]

    assert lines == [
        "• Today (due: March 10, 2026) [overdue]",
        "• Tomorrow (due: March 11, 2026) [due tomorrow]",
        "• Far away (due: March 20, 2026)",
    ]


def test_text_body_mentions_horizon():
    tasks = [ReminderTask("Essay", days_from_now(2))]
    assert "next 40 days" in todo_reminder_text("Mia", tasks, ReminderMode.MONTHLY, FIXED_NOW)
    assert "next 7 days" in todo_reminder_text("Mia", tasks, ReminderMode.WEEKLY, FIXED_NOW)


def test_text_body_urgent_banner_only_in_urgent_mode():
    tasks = [ReminderTask("Essay", days_from_now(2))]
    urgent = todo_reminder_text("Mia", tasks, ReminderMode.URGENT, FIXED_NOW)
    weekly = todo_reminder_text("Mia", tasks, ReminderMode.WEEKLY, FIXED_NOW)

    assert "about to be due" in urgent
    assert "about to be due" not in weekly


def test_text_body_footer_uses_current_year():
    text = todo_reminder_text("Mia", [], ReminderMode.WEEKLY, FIXED_NOW)
    assert "© 2026" in text
