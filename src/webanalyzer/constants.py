# src/webanalyzer/constants.py
"""Centralized constants for the website analyzer.

This module contains magic numbers and fixed values that are used across
multiple modules. For environment-configurable values, see config.py and
AnalyzerConfig.
"""

# =============================================================================
# Network Constants
# =============================================================================

# Timeout for the top-level page fetch (seconds)
DEFAULT_PAGE_TIMEOUT_SECONDS = 30.0

# Timeout for a single link probe (seconds)
DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0

# Redirects followed before a fetch or probe counts as a redirect loop
DEFAULT_PAGE_MAX_REDIRECTS = 10
DEFAULT_PROBE_MAX_REDIRECTS = 5

# Probes in flight at once for a single job
DEFAULT_MAX_CONCURRENT_PROBES = 10

# Probes in flight at once across all jobs of one dispatcher (0 = unlimited)
DEFAULT_GLOBAL_PROBE_LIMIT = 100

DEFAULT_USER_AGENT = "WebsiteAnalyzer/1.0"


# =============================================================================
# Link Health Constants
# =============================================================================

# Status code recorded when a probe fails below the HTTP layer
UNREACHABLE_STATUS_CODE = 0
UNREACHABLE_STATUS_TEXT = "Unreachable"

# First status code that marks a link as broken
BROKEN_STATUS_THRESHOLD = 400

# Hrefs that never point anywhere
NON_NAVIGABLE_HREFS = ("", "#")
SCRIPT_HREF_PREFIX = "javascript:"


# =============================================================================
# Markup Constants
# =============================================================================

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

HTML_VERSION_UNKNOWN = "Unknown"
HTML_VERSION_HTML5 = "HTML5"

# Doctype substrings checked in order; first match wins
DOCTYPE_VERSION_MARKERS = (
    ("HTML 4.01", "HTML 4.01"),
    ("XHTML 1.0", "XHTML 1.0"),
    ("XHTML 1.1", "XHTML 1.1"),
)

LOGIN_TEXT_PATTERN = r"(?i)(login|sign in|signin)"


# =============================================================================
# Job Messages
# =============================================================================

STOPPED_BY_USER_MESSAGE = "Analysis stopped by user"
CANCELLED_MESSAGE = "Analysis cancelled"
ALREADY_RUNNING_MESSAGE = "Website is already being analyzed"
NOT_RUNNING_MESSAGE = "Website is not being analyzed"


# =============================================================================
# Storage Constants
# =============================================================================

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Columns a target listing may be sorted by
SORTABLE_COLUMNS = (
    "id",
    "url",
    "title",
    "status",
    "created_at",
    "updated_at",
    "internal_links",
    "external_links",
)
