class PriceTrackerError(Exception):
    """Base class for errors raised by the tracker's own code."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PriceTrackerError):
    """Bad user input: missing or malformed URL, unsupported domain, duplicate."""

    status_code = 400


class AuthError(PriceTrackerError):
    status_code = 401


class ExtractionFailed(PriceTrackerError):
    """No price could be derived from the fetched page."""

    status_code = 422


class FetchError(PriceTrackerError):
    """The product page could not be downloaded."""

    status_code = 502


class PersistenceError(PriceTrackerError):
    status_code = 500


class NotificationError(PriceTrackerError):
    """Email provider rejected or failed a send. Logged, never surfaced."""
