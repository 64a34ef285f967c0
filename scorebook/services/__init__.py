"""
Services module containing the sync store and gradebook operations.
"""

from .sync_store import SyncStore, SyncResult, LOAD_ERROR_MESSAGE
from .gradebook_service import GradebookService, build_seed_subject, parse_score

__all__ = [
    "SyncStore",
    "SyncResult",
    "LOAD_ERROR_MESSAGE",
    "GradebookService",
    "build_seed_subject",
    "parse_score",
]
