"""
Scorebook: a single-teacher gradebook with optimistic, backend-agnostic sync.

Subjects, class sections and student roster entries are kept in one value that
is synchronised to an on-device store, a document store or a spreadsheet web
endpoint, while totals and grade points are always derived from raw scores.
"""

__version__ = "1.0.0"
__author__ = "Scorebook Development Team"
__description__ = "Single-teacher gradebook with optimistic, backend-agnostic sync"
