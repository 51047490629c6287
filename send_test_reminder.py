"""
Send a one-off todo reminder for a student
Usage: python send_test_reminder.py <student_id> --pending <count> [--email someone@example.com]
"""

import argparse
import asyncio
import logging
import os
import sys

from collegeplan.domain.reminders.trigger import ERROR, LoggingReporter, ReminderTrigger

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Send a one-off todo reminder for a student")
    parser.add_argument("student_id", help="Profile id of the student")
    parser.add_argument(
        "--pending", type=int, required=True, help="Number of pending todos the student has"
    )
    parser.add_argument("--email", default=None, help="Send only to this address")
    parser.add_argument("--domain", default=None, help="Sending domain override")
    parser.add_argument(
        "--mode", choices=["monthly", "weekly", "urgent"], default=None, help="Due-date window"
    )
    parser.add_argument(
        "--api-url", default=os.getenv("REMINDER_API_URL", "http://localhost:8000")
    )
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    args = parse_args(argv)
    token = os.getenv("REMINDER_ACCESS_TOKEN")
    if not token:
        logger.error("❌ REMINDER_ACCESS_TOKEN is not set")
        return 1

    trigger = ReminderTrigger(args.api_url, token, LoggingReporter(logger))
    outcome = await trigger.send(
        args.student_id,
        args.pending,
        custom_email=args.email,
        domain=args.domain,
        mode=args.mode,
    )
    return 1 if outcome.kind == ERROR else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
