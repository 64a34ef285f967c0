"""
Core entities for the Scorebook platform.

The tree is Subject -> ClassSection -> Student. Entities serialise to the
camelCase payload that every storage backend persists.
"""

import uuid
from typing import Any, Dict, Iterable, List, Optional

from .enums import Term, ScoreField


def generate_id() -> str:
    """Generate an opaque unique identifier."""
    return str(uuid.uuid4())


class ScoreComponents:
    """Three formative scores and one exam score for a single term."""

    FIELDS = tuple(field.value for field in ScoreField)

    def __init__(self, c1: Optional[float] = 0, c2: Optional[float] = 0,
                 c3: Optional[float] = 0, exam: Optional[float] = 0):
        self._c1 = c1
        self._c2 = c2
        self._c3 = c3
        self._exam = exam

    @property
    def c1(self) -> Optional[float]:
        return self._c1

    @property
    def c2(self) -> Optional[float]:
        return self._c2

    @property
    def c3(self) -> Optional[float]:
        return self._c3

    @property
    def exam(self) -> Optional[float]:
        return self._exam

    def get(self, field: ScoreField) -> float:
        """Get a score, treating an unset field as 0."""
        return getattr(self, f"_{field.value}") or 0

    def set(self, field: ScoreField, value: float) -> None:
        """Set a score in place."""
        setattr(self, f"_{field.value}", value)

    @classmethod
    def zero(cls) -> "ScoreComponents":
        return cls(0, 0, 0, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, f"_{name}") for name in self.FIELDS}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ScoreComponents":
        # Absent keys stay None so they read back as 0 without being invented.
        data = data or {}
        return cls(*(data.get(name) for name in cls.FIELDS))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScoreComponents):
            return NotImplemented
        return all(self.get(field) == other.get(field) for field in ScoreField)

    def __repr__(self) -> str:
        return f"ScoreComponents(c1={self._c1}, c2={self._c2}, c3={self._c3}, exam={self._exam})"


class Student:
    """A roster entry within one class section."""

    def __init__(self, name: str, no: str = "", student_id: str = "",
                 master_id: Optional[str] = None,
                 midterm: Optional[ScoreComponents] = None,
                 final: Optional[ScoreComponents] = None,
                 entity_id: Optional[str] = None):
        self._id = entity_id or generate_id()
        self._master_id = master_id
        self._no = no
        self._student_id = student_id
        self._name = name
        self._midterm = midterm if midterm is not None else ScoreComponents.zero()
        self._final = final if final is not None else ScoreComponents.zero()

    @property
    def id(self) -> str:
        return self._id

    @property
    def master_id(self) -> Optional[str]:
        return self._master_id

    @property
    def no(self) -> str:
        return self._no

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def midterm(self) -> ScoreComponents:
        return self._midterm

    @property
    def final(self) -> ScoreComponents:
        return self._final

    def scores_for(self, term: Term) -> ScoreComponents:
        """Get the ScoreComponents group of a term."""
        return self._midterm if term is Term.MIDTERM else self._final

    def set_score(self, term: Term, field: ScoreField, value: float) -> None:
        """Update one score in place."""
        self.scores_for(term).set(field, value)

    def update_details(self, no: Optional[str] = None, student_id: Optional[str] = None,
                       name: Optional[str] = None) -> None:
        """Update the identity fields shown on the roster."""
        if no is not None:
            self._no = no
        if student_id is not None:
            self._student_id = student_id
        if name is not None:
            self._name = name

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self._id,
            "no": self._no,
            "studentId": self._student_id,
            "name": self._name,
            "midterm": self._midterm.to_dict(),
            "final": self._final.to_dict(),
        }
        if self._master_id is not None:
            data["masterId"] = self._master_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Student":
        return cls(
            name=data.get("name", ""),
            no=str(data.get("no", "")),
            student_id=data.get("studentId", ""),
            master_id=data.get("masterId"),
            midterm=ScoreComponents.from_dict(data.get("midterm")),
            final=ScoreComponents.from_dict(data.get("final")),
            entity_id=data.get("id"),
        )

    def __repr__(self) -> str:
        return f"Student(id={self._id}, no={self._no}, name={self._name})"


class ClassSection:
    """A class section holding an ordered list of students."""

    def __init__(self, name: str, students: Optional[Iterable[Student]] = None,
                 entity_id: Optional[str] = None):
        self._id = entity_id or generate_id()
        self._name = name
        self._students: List[Student] = list(students or [])

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def students(self) -> List[Student]:
        return self._students

    @property
    def master_ids(self) -> List[str]:
        """Master roster ids already present in this section."""
        return [s.master_id for s in self._students if s.master_id is not None]

    def find_student(self, student_id: str) -> Optional[Student]:
        for student in self._students:
            if student.id == student_id:
                return student
        return None

    def with_students(self, students: Iterable[Student]) -> "ClassSection":
        """Return a copy of this section holding the given students."""
        return ClassSection(self._name, students, entity_id=self._id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self._id,
            "name": self._name,
            "students": [student.to_dict() for student in self._students],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassSection":
        return cls(
            name=data.get("name", ""),
            students=[Student.from_dict(s) for s in data.get("students") or []],
            entity_id=data.get("id"),
        )

    def __repr__(self) -> str:
        return f"ClassSection(id={self._id}, name={self._name}, students={len(self._students)})"


class Subject:
    """A subject holding an ordered list of class sections."""

    def __init__(self, name: str, code: str = "", classes: Optional[Iterable[ClassSection]] = None,
                 entity_id: Optional[str] = None):
        self._id = entity_id or generate_id()
        self._code = code
        self._name = name
        self._classes: List[ClassSection] = list(classes or [])

    @property
    def id(self) -> str:
        return self._id

    @property
    def code(self) -> str:
        return self._code

    @property
    def name(self) -> str:
        return self._name

    @property
    def classes(self) -> List[ClassSection]:
        return self._classes

    def find_class(self, class_id: str) -> Optional[ClassSection]:
        for section in self._classes:
            if section.id == class_id:
                return section
        return None

    def add_class(self, section: ClassSection) -> None:
        self._classes.append(section)

    def replace_class(self, section: ClassSection) -> None:
        """Swap in a section with the same id."""
        self._classes = [section if c.id == section.id else c for c in self._classes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self._id,
            "code": self._code,
            "name": self._name,
            "classes": [section.to_dict() for section in self._classes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subject":
        return cls(
            name=data.get("name", ""),
            code=data.get("code", ""),
            classes=[ClassSection.from_dict(c) for c in data.get("classes") or []],
            entity_id=data.get("id"),
        )

    def __repr__(self) -> str:
        return f"Subject(id={self._id}, code={self._code}, name={self._name})"


class MasterRosterEntry:
    """Read-only reference record used as an import source."""

    __slots__ = ("_id", "_name", "_original_class")

    def __init__(self, entry_id: str, name: str, original_class: str):
        self._id = entry_id
        self._name = name
        self._original_class = original_class

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def original_class(self) -> str:
        return self._original_class

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self._id, "name": self._name, "originalClass": self._original_class}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MasterRosterEntry":
        return cls(str(data["id"]), data["name"], data.get("originalClass", ""))

    def __repr__(self) -> str:
        return f"MasterRosterEntry(id={self._id}, name={self._name})"


def subjects_to_payload(subjects: Iterable[Subject]) -> List[Dict[str, Any]]:
    """Serialise a subject tree for storage."""
    return [subject.to_dict() for subject in subjects]


def subjects_from_payload(payload: Optional[Iterable[Dict[str, Any]]]) -> List[Subject]:
    """Rebuild a subject tree from a stored payload."""
    return [Subject.from_dict(item) for item in payload or []]
