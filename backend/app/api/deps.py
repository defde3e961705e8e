from app.notify.dispatcher import NotificationDispatcher
from app.notify.email import build_email_sender
from app.scraping.fetcher import CashifyScraper


def get_scraper() -> CashifyScraper:
    return CashifyScraper()


def get_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(build_email_sender())
