"""One-shot batch re-check across every user's products. Run from cron."""

import asyncio

from app.core.logger import configure_logging
from app.db.session import SessionLocal
from app.notify.dispatcher import NotificationDispatcher
from app.notify.email import build_email_sender
from app.scraping.fetcher import CashifyScraper
from app.services.monitor import run_monitor_cycle


def main():
    configure_logging()
    db = SessionLocal()
    try:
        dispatcher = NotificationDispatcher(build_email_sender())
        summary = asyncio.run(run_monitor_cycle(db, CashifyScraper(), dispatcher))
    finally:
        db.close()
    return 1 if summary.errors and not summary.updated else 0


if __name__ == "__main__":
    raise SystemExit(main())
