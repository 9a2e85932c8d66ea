"""Error types raised by promplot.

Every error surfaces to the top level and ends the run; nothing here is
retried or recovered from.
"""


class PromPlotError(Exception):
    """Base class for all promplot failures."""


class ConfigError(PromPlotError, ValueError):
    """Raised when the run is misconfigured (no query, bad duration, ...)."""


class BackendError(PromPlotError):
    """Raised when the range query fails at the network or backend level."""

    def __init__(self, message: str, *, error_type: str | None = None) -> None:
        self.error_type = error_type
        self.message = message
        prefix = f"{error_type}: " if error_type else ""
        super().__init__(f"Query failed: {prefix}{message}")


class UnsupportedResultError(PromPlotError):
    """Raised when the backend returns a result shape promplot cannot handle."""

    def __init__(self, result_type: str) -> None:
        self.result_type = result_type
        super().__init__(f"Received unsupported result type '{result_type}' from prometheus")


class RenderError(PromPlotError, OSError):
    """Raised when the plot cannot be built or written to its destination."""
