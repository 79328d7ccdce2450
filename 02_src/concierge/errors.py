"""Exception types shared across the concierge pipeline."""


class ConciergeError(Exception):
    """Base class for all concierge errors."""


class ConfigurationError(ConciergeError):
    """A required endpoint, queue or credential is not configured."""


class SubmissionError(ConciergeError):
    """A completed request could not be placed on the work queue."""


class SearchError(ConciergeError):
    """The search index could not be queried."""


class NotificationError(ConciergeError):
    """The notification channel rejected a message."""


class QueueError(ConciergeError):
    """The work queue could not be read or acknowledged."""


class StoreError(ConciergeError):
    """The record or preference store rejected a request."""
