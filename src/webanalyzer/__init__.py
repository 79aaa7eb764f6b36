"""Single-page website analyzer: structure extraction and link health checks."""

__version__ = "0.1.0"

from webanalyzer.job import AnalysisJob
from webanalyzer.dispatcher import AnalysisDispatcher, JobHandle
from webanalyzer.link_checker import LinkHealthChecker, collect_broken_links
from webanalyzer.link_classifier import LinkClassification, classify_links
from webanalyzer.extractor import PageFeatures, extract_features
from webanalyzer.url_resolver import resolve_href, validate_target_url
from webanalyzer.database import AbstractDatabase, LocalSqliteDatabase, get_db_client
from webanalyzer.models import (
    AnalysisStatus,
    AnalysisTarget,
    HeadingProfile,
    LinkProfile,
    BrokenLinkRecord,
    ProbeOutcome,
    AnalysisResult,
    AnalysisReport,
)
from webanalyzer.exceptions import (
    WebAnalyzerError,
    InvalidTargetURL,
    URLResolutionError,
    TargetNotFound,
    AnalysisConflict,
    InvalidStatusTransition,
    MissingErrorMessage,
    AnalysisFailed,
)
from webanalyzer.config import AnalyzerConfig, settings

__all__ = [
    # Core
    "AnalysisJob",
    "AnalysisDispatcher",
    "JobHandle",
    "LinkHealthChecker",
    "collect_broken_links",
    "LinkClassification",
    "classify_links",
    "PageFeatures",
    "extract_features",
    "resolve_href",
    "validate_target_url",
    # Storage
    "AbstractDatabase",
    "LocalSqliteDatabase",
    "get_db_client",
    # Models
    "AnalysisStatus",
    "AnalysisTarget",
    "HeadingProfile",
    "LinkProfile",
    "BrokenLinkRecord",
    "ProbeOutcome",
    "AnalysisResult",
    "AnalysisReport",
    # Errors
    "WebAnalyzerError",
    "InvalidTargetURL",
    "URLResolutionError",
    "TargetNotFound",
    "AnalysisConflict",
    "InvalidStatusTransition",
    "MissingErrorMessage",
    "AnalysisFailed",
    "AnalyzerConfig",
    "settings",
]
