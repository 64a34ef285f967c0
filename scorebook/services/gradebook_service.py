"""
Gradebook service: the teacher's actions on the subject tree.

Each mutation works on a copy of the current tree and hands the copy to the
sync store in a single ``save()``, so readers only ever observe whole states.
"""

import copy
import logging
import math
from typing import Any, List, Optional, Sequence, Tuple, Union

from ..core.entities import ClassSection, MasterRosterEntry, Student, Subject
from ..core.enums import ScoreField, Term
from ..core.exceptions import ResourceNotFoundError, ValidationError
from ..core.grading import RosterStatistics, StudentSummary, compute_statistics, summarize_student
from ..core.roster import MasterRoster, create_class_from_roster, import_into_section, importable_entries
from .sync_store import SyncResult, SyncStore

logger = logging.getLogger(__name__)


def build_seed_subject(roster: MasterRoster, name: str, code: str = "",
                       class_labels: Sequence[str] = ()) -> Subject:
    """Create a subject whose classes are filled from the master roster."""
    classes = [create_class_from_roster(label, roster, label) for label in class_labels]
    return Subject(name=name, code=code, classes=classes)


def parse_score(raw_value: Any) -> Optional[float]:
    """Parse a score entry; blank means 0, unparsable means None.

    The whole entry must be a number: "12abc" is unparsable rather than 12,
    unlike a leading-prefix parse. Booleans, NaN and infinities are rejected.
    """
    if raw_value is None:
        return 0
    if isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, (int, float)):
        value = raw_value
    else:
        text = str(raw_value).strip()
        if text == "":
            return 0
        try:
            value = float(text)
        except ValueError:
            return None
    if not math.isfinite(value):
        return None
    return value


class GradebookService:
    """Subject, class and score operations on top of a sync store."""

    def __init__(self, store: SyncStore[List[Subject]]):
        self._store = store

    @property
    def store(self) -> SyncStore[List[Subject]]:
        return self._store

    @property
    def subjects(self) -> List[Subject]:
        return self._store.value

    # === lookups ===

    def find_subject(self, subject_id: str, subjects: Optional[List[Subject]] = None) -> Subject:
        for subject in subjects if subjects is not None else self.subjects:
            if subject.id == subject_id:
                return subject
        raise ResourceNotFoundError(f"Subject {subject_id} not found", error_code="SUBJECT_NOT_FOUND")

    def find_class(self, subject_id: str, class_id: str,
                   subjects: Optional[List[Subject]] = None) -> ClassSection:
        section = self.find_subject(subject_id, subjects).find_class(class_id)
        if section is None:
            raise ResourceNotFoundError(f"Class {class_id} not found", error_code="CLASS_NOT_FOUND")
        return section

    def find_student(self, subject_id: str, class_id: str, student_id: str,
                     subjects: Optional[List[Subject]] = None) -> Student:
        student = self.find_class(subject_id, class_id, subjects).find_student(student_id)
        if student is None:
            raise ResourceNotFoundError(f"Student {student_id} not found", error_code="STUDENT_NOT_FOUND")
        return student

    # === mutations ===

    async def create_subject(self, name: str, code: str = "") -> Subject:
        """Add an empty subject."""
        name = self._require_name(name, "Subject name")
        subject = Subject(name=name, code=code or "")
        subjects = self._working_copy()
        subjects.append(subject)
        await self._commit(subjects)
        return subject

    async def create_class(self, subject_id: str, name: str) -> ClassSection:
        """Add an empty class section to a subject."""
        name = self._require_name(name, "Class name")
        subjects = self._working_copy()
        section = ClassSection(name)
        self.find_subject(subject_id, subjects).add_class(section)
        await self._commit(subjects)
        return section

    def candidates(self, subject_id: str, class_id: str, roster: MasterRoster,
                   term: str = "") -> List[MasterRosterEntry]:
        """Roster entries that can still be imported into a class."""
        return importable_entries(self.find_class(subject_id, class_id), roster, term)

    async def import_students(self, subject_id: str, class_id: str,
                              entries: Sequence[MasterRosterEntry]) -> List[Student]:
        """Append the selected roster entries to a class in one state change."""
        if not entries:
            return []
        subjects = self._working_copy()
        subject = self.find_subject(subject_id, subjects)
        section = self.find_class(subject_id, class_id, subjects)
        updated = import_into_section(section, entries)
        subject.replace_class(updated)
        await self._commit(subjects)
        logger.info("Imported %d students into class %s", len(entries), section.name)
        return updated.students[len(section.students):]

    async def remove_student(self, subject_id: str, class_id: str, student_id: str) -> Student:
        """Delete a student from a class. There is no undo."""
        subjects = self._working_copy()
        subject = self.find_subject(subject_id, subjects)
        section = self.find_class(subject_id, class_id, subjects)
        student = self.find_student(subject_id, class_id, student_id, subjects)
        subject.replace_class(section.with_students(s for s in section.students if s.id != student_id))
        await self._commit(subjects)
        return student

    async def update_score(self, subject_id: str, class_id: str, student_id: str,
                           term: Union[Term, str], field: Union[ScoreField, str],
                           raw_value: Any) -> Optional[Student]:
        """Set one score from a raw entry.

        A blank entry clears the score to 0. An entry that does not parse as a
        finite number is ignored and None is returned.
        """
        term, field = self._coerce_score_target(term, field)
        value = parse_score(raw_value)
        if value is None:
            return None
        if value < 0:
            raise ValidationError("Scores cannot be negative", error_code="NEGATIVE_SCORE",
                                  details={"value": value})

        subjects = self._working_copy()
        student = self.find_student(subject_id, class_id, student_id, subjects)
        student.set_score(term, field, value)
        await self._commit(subjects)
        return student

    async def update_student_details(self, subject_id: str, class_id: str, student_id: str,
                                     no: Optional[str] = None, student_number: Optional[str] = None,
                                     name: Optional[str] = None) -> Student:
        """Edit the sequence number, external id or name of a student."""
        if name is not None:
            name = self._require_name(name, "Student name")
        subjects = self._working_copy()
        student = self.find_student(subject_id, class_id, student_id, subjects)
        student.update_details(no=no, student_id=student_number, name=name)
        await self._commit(subjects)
        return student

    async def seed_from_roster(self, roster: MasterRoster, name: str, code: str = "",
                               class_labels: Sequence[str] = ()) -> Subject:
        """Add a subject with classes pre-filled from the master roster."""
        name = self._require_name(name, "Subject name")
        subject = build_seed_subject(roster, name, code, class_labels)
        subjects = self._working_copy()
        subjects.append(subject)
        await self._commit(subjects)
        return subject

    # === derived views ===

    def students_in_scope(self, subject_id: Optional[str] = None,
                          class_id: Optional[str] = None) -> List[Student]:
        """Students of one class, one subject, or every subject."""
        if subject_id and class_id:
            return list(self.find_class(subject_id, class_id).students)
        if subject_id:
            subject = self.find_subject(subject_id)
            return [s for section in subject.classes for s in section.students]
        return [s for subject in self.subjects for section in subject.classes for s in section.students]

    def statistics(self, subject_id: Optional[str] = None,
                   class_id: Optional[str] = None) -> RosterStatistics:
        return compute_statistics(self.students_in_scope(subject_id, class_id))

    def class_report(self, subject_id: str, class_id: str) -> List[Tuple[Student, StudentSummary]]:
        """Each student of a class with their derived total, grade point and tier."""
        return [(s, summarize_student(s)) for s in self.find_class(subject_id, class_id).students]

    # === internals ===

    def _working_copy(self) -> List[Subject]:
        return copy.deepcopy(list(self.subjects))

    async def _commit(self, subjects: List[Subject]) -> SyncResult:
        return await self._store.save(subjects)

    @staticmethod
    def _require_name(value: Optional[str], label: str) -> str:
        if value is None or not value.strip():
            raise ValidationError(f"{label} is required", error_code="MISSING_REQUIRED_FIELD")
        return value.strip()

    @staticmethod
    def _coerce_score_target(term: Union[Term, str], field: Union[ScoreField, str]) -> Tuple[Term, ScoreField]:
        try:
            return Term(term), ScoreField(field)
        except ValueError:
            raise ValidationError(f"Unknown score target {term}/{field}", error_code="INVALID_FIELD_VALUE")
