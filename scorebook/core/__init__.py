"""
Core module containing the object model, grade engine and base classes.
"""

from .entities import *
from .interfaces import *
from .exceptions import *
from .enums import *
from .grading import *
from .roster import *
from .session import *

__all__ = [
    # Entities
    "ScoreComponents",
    "Student",
    "ClassSection",
    "Subject",
    "MasterRosterEntry",
    "generate_id",
    "subjects_to_payload",
    "subjects_from_payload",
    
    # Grade engine
    "GRADE_LADDER",
    "StudentSummary",
    "RosterStatistics",
    "compute_total",
    "compute_grade_point",
    "classify_presentation_tier",
    "summarize_student",
    "compute_statistics",
    
    # Roster import
    "MasterRoster",
    "importable_entries",
    "build_imported_students",
    "import_into_section",
    "create_class_from_roster",
    
    # Session
    "SessionContext",
    "Authenticator",
    
    # Interfaces
    "LoadResult",
    "StorageBackend",
    "DocumentClient",
    
    # Enums
    "Term",
    "ScoreField",
    "PresentationTier",
    "BackendType",
    "StoreStatus",
    "SyncResultStatus",
    
    # Exceptions
    "ScorebookException",
    "ValidationError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "DuplicateEntityError",
    "PersistenceError",
    "NetworkError",
    "ConfigurationError",
]
