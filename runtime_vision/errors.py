"""Exceptions raised by the collector and mapped to HTTP responses."""


class CollectorError(Exception):
    """Base class for collector errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedEventError(CollectorError):
    """Ingestion body could not be parsed into an event."""

    status_code = 400
