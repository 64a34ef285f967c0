"""
REST API for the Scorebook platform using FastAPI.
"""

from typing import Optional, Dict, List, Union
from datetime import datetime, timezone
from pydantic import BaseModel, Field

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from ..core.entities import ClassSection, Student, Subject
from ..core.exceptions import (
    DuplicateEntityError, ResourceNotFoundError, ScorebookException, ValidationError
)
from ..core.grading import summarize_student
from ..core.roster import MasterRoster
from ..services import GradebookService


# Pydantic models for API
class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field("", max_length=50)


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class ScoreComponentsModel(BaseModel):
    c1: Optional[float] = None
    c2: Optional[float] = None
    c3: Optional[float] = None
    exam: Optional[float] = None


class StudentResponse(BaseModel):
    id: str
    master_id: Optional[str] = None
    no: str
    student_id: str
    name: str
    midterm: ScoreComponentsModel
    final: ScoreComponentsModel
    total: float
    grade_point: float
    tier: str


class ClassResponse(BaseModel):
    id: str
    name: str
    student_count: int


class SubjectResponse(BaseModel):
    id: str
    code: str
    name: str
    classes: List[ClassResponse] = []


class CandidateResponse(BaseModel):
    id: str
    name: str
    original_class: str


class ImportRequest(BaseModel):
    entry_ids: List[str] = Field(..., min_length=1)


class ScoreUpdate(BaseModel):
    term: str = Field(..., pattern=r'^(midterm|final)$')
    field: str = Field(..., pattern=r'^(c1|c2|c3|exam)$')
    value: Optional[Union[float, str]] = None


class ScoreUpdateResponse(BaseModel):
    updated: bool
    student: StudentResponse


class StudentUpdate(BaseModel):
    no: Optional[str] = None
    student_id: Optional[str] = None
    name: Optional[str] = None


class StatisticsResponse(BaseModel):
    count: int
    average_grade_point: float
    highest_total: float


class SyncStatusResponse(BaseModel):
    backend: str
    status: str
    loading: bool
    saving: bool
    error: Optional[str] = None
    pending_writes: int
    last_save: Optional[str] = None


def _to_http_exception(error: ScorebookException) -> HTTPException:
    if isinstance(error, ResourceNotFoundError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, DuplicateEntityError):
        return HTTPException(status_code=409, detail=error.message)
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=error.message)
    return HTTPException(status_code=500, detail=f"Internal error: {error.message}")


class ScorebookRestAPI:
    """REST API over a gradebook service and its master roster."""

    def __init__(self, service: GradebookService, roster: MasterRoster):
        self._service = service
        self._roster = roster

        self.app = FastAPI(
            title="Scorebook API",
            description="Subjects, classes and scores for a single teacher",
            version="1.0.0",
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/", response_model=Dict[str, str])
        async def root():
            return {
                "message": "Scorebook API",
                "version": "1.0.0",
                "docs": "/docs"
            }

        @self.app.get("/health", response_model=Dict[str, str])
        async def health_check():
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        # Subject endpoints
        @self.app.get("/subjects", response_model=List[SubjectResponse])
        async def list_subjects():
            return [self._subject_to_response(subject) for subject in self._service.subjects]

        @self.app.post("/subjects", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
        async def create_subject(subject_data: SubjectCreate):
            try:
                subject = await self._service.create_subject(subject_data.name, subject_data.code)
                return self._subject_to_response(subject)
            except ScorebookException as e:
                raise _to_http_exception(e)

        @self.app.post("/subjects/{subject_id}/classes", response_model=ClassResponse,
                       status_code=status.HTTP_201_CREATED)
        async def create_class(subject_id: str, class_data: ClassCreate):
            try:
                section = await self._service.create_class(subject_id, class_data.name)
                return self._class_to_response(section)
            except ScorebookException as e:
                raise _to_http_exception(e)

        # Roster endpoints
        @self.app.get("/subjects/{subject_id}/classes/{class_id}/students",
                      response_model=List[StudentResponse])
        async def list_students(subject_id: str, class_id: str):
            try:
                section = self._service.find_class(subject_id, class_id)
                return [self._student_to_response(student) for student in section.students]
            except ScorebookException as e:
                raise _to_http_exception(e)

        @self.app.get("/subjects/{subject_id}/classes/{class_id}/candidates",
                      response_model=List[CandidateResponse])
        async def list_candidates(subject_id: str, class_id: str, search: str = ""):
            """Master roster entries not yet in the class."""
            try:
                entries = self._service.candidates(subject_id, class_id, self._roster, search)
                return [
                    CandidateResponse(id=e.id, name=e.name, original_class=e.original_class)
                    for e in entries
                ]
            except ScorebookException as e:
                raise _to_http_exception(e)

        @self.app.post("/subjects/{subject_id}/classes/{class_id}/import",
                       response_model=List[StudentResponse], status_code=status.HTTP_201_CREATED)
        async def import_students(subject_id: str, class_id: str, import_data: ImportRequest):
            entries = self._roster.select(import_data.entry_ids)
            missing = set(import_data.entry_ids) - {entry.id for entry in entries}
            if missing:
                raise HTTPException(status_code=404, detail=f"Unknown roster entries: {sorted(missing)}")
            try:
                students = await self._service.import_students(subject_id, class_id, entries)
                return [self._student_to_response(student) for student in students]
            except ScorebookException as e:
                raise _to_http_exception(e)

        # Score endpoints
        @self.app.put("/subjects/{subject_id}/classes/{class_id}/students/{student_id}/score",
                      response_model=ScoreUpdateResponse)
        async def update_score(subject_id: str, class_id: str, student_id: str, score_data: ScoreUpdate):
            try:
                student = await self._service.update_score(
                    subject_id, class_id, student_id,
                    score_data.term, score_data.field, score_data.value
                )
                if student is None:
                    current = self._service.find_student(subject_id, class_id, student_id)
                    return ScoreUpdateResponse(updated=False, student=self._student_to_response(current))
                return ScoreUpdateResponse(updated=True, student=self._student_to_response(student))
            except ScorebookException as e:
                raise _to_http_exception(e)

        @self.app.patch("/subjects/{subject_id}/classes/{class_id}/students/{student_id}",
                        response_model=StudentResponse)
        async def update_student(subject_id: str, class_id: str, student_id: str, student_data: StudentUpdate):
            try:
                student = await self._service.update_student_details(
                    subject_id, class_id, student_id,
                    no=student_data.no,
                    student_number=student_data.student_id,
                    name=student_data.name
                )
                return self._student_to_response(student)
            except ScorebookException as e:
                raise _to_http_exception(e)

        @self.app.delete("/subjects/{subject_id}/classes/{class_id}/students/{student_id}",
                         response_model=Dict[str, str])
        async def remove_student(subject_id: str, class_id: str, student_id: str):
            try:
                student = await self._service.remove_student(subject_id, class_id, student_id)
                return {"removed": student.id}
            except ScorebookException as e:
                raise _to_http_exception(e)

        # Statistics endpoints
        @self.app.get("/statistics", response_model=StatisticsResponse)
        async def get_statistics(subject_id: Optional[str] = None, class_id: Optional[str] = None):
            """Dashboard, subject or class statistics depending on the filters."""
            try:
                stats = self._service.statistics(subject_id, class_id)
                return StatisticsResponse(
                    count=stats.count,
                    average_grade_point=stats.average_grade_point,
                    highest_total=stats.highest_total
                )
            except ScorebookException as e:
                raise _to_http_exception(e)

        @self.app.get("/sync", response_model=SyncStatusResponse)
        async def get_sync_status():
            store = self._service.store
            last = store.last_save_result
            return SyncStatusResponse(
                **store.describe(),
                last_save=last.status.value if last else None
            )

    def _student_to_response(self, student: Student) -> StudentResponse:
        """Convert Student entity to response model."""
        summary = summarize_student(student)
        return StudentResponse(
            id=student.id,
            master_id=student.master_id,
            no=student.no,
            student_id=student.student_id,
            name=student.name,
            midterm=ScoreComponentsModel(**student.midterm.to_dict()),
            final=ScoreComponentsModel(**student.final.to_dict()),
            total=summary.total,
            grade_point=summary.grade_point,
            tier=summary.tier.value
        )

    def _class_to_response(self, section: ClassSection) -> ClassResponse:
        return ClassResponse(id=section.id, name=section.name, student_count=len(section.students))

    def _subject_to_response(self, subject: Subject) -> SubjectResponse:
        return SubjectResponse(
            id=subject.id,
            code=subject.code,
            name=subject.name,
            classes=[self._class_to_response(section) for section in subject.classes]
        )
