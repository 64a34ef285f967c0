"""
Master roster lookup and the import rules that turn roster entries into
class section students.
"""

import json
from typing import Iterable, List, Optional, Sequence

from .entities import ClassSection, MasterRosterEntry, ScoreComponents, Student
from .exceptions import ConfigurationError, DuplicateEntityError


class MasterRoster:
    """Static, read-only list of known students available for import."""

    def __init__(self, entries: Optional[Iterable[MasterRosterEntry]] = None):
        self._entries = tuple(entries or ())

    @property
    def entries(self) -> Sequence[MasterRosterEntry]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Optional[MasterRosterEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def select(self, entry_ids: Iterable[str]) -> List[MasterRosterEntry]:
        """Entries whose ids are in ``entry_ids``, in roster order."""
        wanted = set(entry_ids)
        return [entry for entry in self._entries if entry.id in wanted]

    def search(self, term: str = "") -> List[MasterRosterEntry]:
        """Case-sensitive substring match on name, id or original class."""
        return [
            entry for entry in self._entries
            if term in entry.name or term in entry.id or term in entry.original_class
        ]

    def by_original_class(self, label: str) -> List[MasterRosterEntry]:
        return [entry for entry in self._entries if entry.original_class == label]

    @classmethod
    def from_file(cls, path: str) -> "MasterRoster":
        """Load a roster from a JSON list of ``{id, name, originalClass}``."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                records = json.load(f)
            return cls(MasterRosterEntry.from_dict(record) for record in records)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise ConfigurationError(f"Failed to load master roster from {path}: {str(e)}")


def importable_entries(section: ClassSection, roster: MasterRoster, term: str = "") -> List[MasterRosterEntry]:
    """Search results that are not already imported into the section."""
    existing = set(section.master_ids)
    return [entry for entry in roster.search(term) if entry.id not in existing]


def build_imported_students(section: ClassSection, entries: Sequence[MasterRosterEntry]) -> List[Student]:
    """Create zero-score students numbered after the current roster."""
    offset = len(section.students)
    return [
        Student(
            name=entry.name,
            no=str(offset + position),
            student_id=entry.id,
            master_id=entry.id,
            midterm=ScoreComponents.zero(),
            final=ScoreComponents.zero(),
        )
        for position, entry in enumerate(entries, start=1)
    ]


def import_into_section(section: ClassSection, entries: Sequence[MasterRosterEntry]) -> ClassSection:
    """Return a new section with every entry appended, or raise and append none."""
    seen = set(section.master_ids)
    for entry in entries:
        if entry.id in seen:
            raise DuplicateEntityError(
                f"Roster entry {entry.id} is already in class {section.name}",
                error_code="DUPLICATE_MASTER_ID",
                details={"master_id": entry.id, "class_id": section.id},
            )
        seen.add(entry.id)
    new_students = build_imported_students(section, entries)
    return section.with_students(section.students + new_students)


def create_class_from_roster(name: str, roster: MasterRoster, origin_label: str) -> ClassSection:
    """Build a class from every roster entry of one original class."""
    section = ClassSection(name)
    return import_into_section(section, roster.by_original_class(origin_label))
