"""
Enumerations and constants for the Scorebook platform.
"""

from enum import Enum


class Term(Enum):
    """Grading terms, each carrying its own ScoreComponents group."""
    MIDTERM = "midterm"
    FINAL = "final"


class ScoreField(Enum):
    """Score fields of a ScoreComponents group."""
    C1 = "c1"
    C2 = "c2"
    C3 = "c3"
    EXAM = "exam"


class PresentationTier(Enum):
    """Display buckets derived from a grade point."""
    EXCELLENT = "excellent"
    GOOD = "good"
    PASS = "pass"
    FAIL = "fail"


class BackendType(Enum):
    """Supported persistence backends."""
    LOCAL = "local"
    DOCUMENT = "document"
    ENDPOINT = "endpoint"


class StoreStatus(Enum):
    """Load lifecycle of a sync store."""
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    LOADED = "loaded"
    LOAD_ERROR = "load_error"


class SyncResultStatus(Enum):
    """Outcome of a sync store operation."""
    LOADED = "loaded"
    NOT_FOUND = "not_found"
    WRITTEN = "written"
    SKIPPED_UNCONFIGURED = "skipped_unconfigured"
    SKIPPED_NOT_LOADED = "skipped_not_loaded"
    FAILED = "failed"
