"""Exception types raised by the website analyzer."""

from typing import Optional


class WebAnalyzerError(Exception):
    """Base class for all analyzer errors."""


class InvalidTargetURL(WebAnalyzerError):
    """Raised when a target URL is rejected before any job starts."""
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL {url!r}: {reason}")


class URLResolutionError(WebAnalyzerError):
    """Raised when an href cannot be resolved. Callers skip the link."""
    def __init__(self, href: str, reason: str):
        self.href = href
        self.reason = reason
        super().__init__(f"Cannot resolve {href!r}: {reason}")


class TargetNotFound(WebAnalyzerError):
    """Raised when no target exists for an identifier."""
    def __init__(self, target_id: int):
        self.target_id = target_id
        super().__init__(f"Website {target_id} not found")


class AnalysisConflict(WebAnalyzerError):
    """Raised when a trigger does not match the target's current status."""
    def __init__(self, target_id: int, message: str):
        self.target_id = target_id
        self.message = message
        super().__init__(message)


class InvalidStatusTransition(WebAnalyzerError):
    """Raised for a status change the lifecycle does not allow."""
    def __init__(self, current: str, new: str):
        self.current = current
        self.new = new
        super().__init__(f"Cannot move from '{current}' to '{new}'")


class MissingErrorMessage(WebAnalyzerError, ValueError):
    """Raised when an error status is recorded without a message."""
    def __init__(self, target_id: Optional[int] = None):
        self.target_id = target_id
        super().__init__("An error status requires an error message")


class AnalysisFailed(WebAnalyzerError):
    """A fatal pipeline failure.

    ``message`` is the short, user-facing cause stored on the target.
    """
    prefix = "Analysis failed"

    def __init__(self, detail: str, cause: Optional[BaseException] = None):
        self.detail = detail
        self.cause = cause
        self.message = f"{self.prefix}: {detail}" if self.prefix else detail
        super().__init__(self.message)


class FetchError(AnalysisFailed):
    """Transport failure fetching the page (DNS, connect, TLS, timeout, redirects)."""
    prefix = "Failed to fetch URL"


class HTTPStatusError(AnalysisFailed):
    """The page answered with a non-2xx status."""
    prefix = "HTTP status code"

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(str(status_code))


class BodyReadError(AnalysisFailed):
    """The response body could not be read."""
    prefix = "Failed to read response body"


class ParseError(AnalysisFailed):
    """The markup could not be parsed into a tree."""
    prefix = "Failed to parse HTML"


class PersistenceError(AnalysisFailed):
    """Writing the result failed."""
    prefix = "Failed to update website data"
