class MonitorError(Exception):
    """Base class for everything the polling core reports."""


class ConfigError(MonitorError):
    """Missing credential or an interval/period outside the allowed set."""


class TransportError(MonitorError):
    """The request never produced an HTTP response."""


class ProtocolError(MonitorError):
    """Non-success status or a body that does not normalize."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class CancelError(MonitorError):
    """A remote cancel call failed. Local state is not rolled back."""
