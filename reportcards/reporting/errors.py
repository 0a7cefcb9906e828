class ReportError(Exception):
    """Base class for report building failures."""


class FeedError(ReportError):
    """Raised when a backend feed cannot be reached or returns junk."""

    def __init__(self, message, url=None):
        super().__init__(message)
        self.url = url


class ExportError(ReportError):
    """Raised when a PDF or Excel document cannot be generated."""
