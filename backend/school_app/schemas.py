from pydantic import BaseModel, BeforeValidator, EmailStr, Field, StringConstraints, field_validator
from datetime import date as date_type, datetime
from typing import Annotated, List, Optional

from school_app.models import UserRole, Audience

def _strip_or_none(value: Optional[str]) -> Optional[str]:
    """Trims text and turns blank optional values into None."""
    if not isinstance(value, str):
        return value
    return value.strip() or None

# Required form text: trimmed, and blank counts as missing
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
OptionalText = Annotated[Optional[str], BeforeValidator(_strip_or_none)]

# --- 1. Accounts & session ---

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    # Admin accounts are only created with create_admin.py
    role: UserRole = UserRole.student

    @field_validator("role")
    @classmethod
    def role_must_not_be_admin(cls, value: UserRole) -> UserRole:
        if value == UserRole.admin:
            raise ValueError("Admin accounts cannot be self-registered")
        return value

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str

class UserOut(BaseModel):
    id: int
    email: EmailStr
    role: UserRole
    class Config:
        from_attributes = True

class SessionContext(BaseModel):
    """The authenticated identity every protected operation receives."""
    user_id: int
    email: str
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.admin, UserRole.teacher)


# --- 2. Students & teachers ---

class StudentCreate(BaseModel):
    name: RequiredText
    class_name: OptionalText = None
    roll_no: OptionalText = None
    email: OptionalText = None

class StudentOut(BaseModel):
    id: int
    name: str
    class_name: Optional[str] = None
    roll_no: Optional[str] = None
    email: Optional[str] = None
    class Config:
        from_attributes = True

class TeacherCreate(BaseModel):
    name: RequiredText = Field(..., description="Full name; the first word becomes the first name")
    subject: OptionalText = None
    email: OptionalText = None

class TeacherOut(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    subject: Optional[str] = None
    email: Optional[str] = None
    class Config:
        from_attributes = True


# --- 3. Events, announcements, assignments ---

class EventBase(BaseModel):
    title: RequiredText
    description: RequiredText
    month_short: RequiredText
    date: Optional[date_type] = None

class EventCreate(EventBase):
    pass

class EventUpdate(EventBase):
    pass

class EventOut(EventBase):
    id: int
    created_at: datetime
    class Config:
        from_attributes = True

class AnnouncementCreate(BaseModel):
    title: RequiredText
    body: RequiredText
    audience: Audience = Audience.all

class AnnouncementUpdate(BaseModel):
    title: Optional[RequiredText] = None
    body: Optional[RequiredText] = None
    audience: Optional[Audience] = None

class AnnouncementOut(BaseModel):
    id: int
    title: str
    body: str
    audience: Audience
    created_by: Optional[int] = None
    created_at: datetime
    class Config:
        from_attributes = True

class AssignmentCreate(BaseModel):
    title: RequiredText
    class_name: RequiredText
    description: OptionalText = None
    due_date: Optional[date_type] = None

class AssignmentOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    class_name: str
    due_date: Optional[date_type] = None
    created_by: Optional[int] = None
    class Config:
        from_attributes = True


# --- 4. Reference data ---

class TermCreate(BaseModel):
    name: RequiredText

class TermOut(BaseModel):
    id: int
    name: str
    class Config:
        from_attributes = True

class SubjectCreate(BaseModel):
    name: RequiredText
    class_name: OptionalText = None

class SubjectOut(BaseModel):
    id: int
    name: str
    class_name: Optional[str] = None
    class Config:
        from_attributes = True


# --- 5. Results sheet (the editable marks/CGPA state) ---

class ResultsOptions(BaseModel):
    terms: List[TermOut]
    subjects: List[SubjectOut]
    classes: List[str]

class ResultsSelection(BaseModel):
    term_id: int
    class_name: str
    subject_id: int

class EditableMark(BaseModel):
    result_id: Optional[int] = None
    marks_obtained: str = ""
    max_marks: str = ""

class EditableCgpa(BaseModel):
    row_id: Optional[int] = None
    value: str = ""

class EditableRow(BaseModel):
    student: StudentOut
    mark: EditableMark = Field(default_factory=EditableMark)
    cgpa: EditableCgpa = Field(default_factory=EditableCgpa)

class ResultsSheet(BaseModel):
    """
    The whole editing session for one (term, class, subject) selection.
    `selection` is None while the sheet is idle.
    """
    selection: Optional[ResultsSelection] = None
    rows: List[EditableRow] = []

class SaveFailure(BaseModel):
    student_id: int
    student_name: str
    field_group: str  # "marks" or "cgpa"
    reason: str

class SaveResponse(BaseModel):
    sheet: ResultsSheet
    message: str

class ReportLine(BaseModel):
    subject_name: str
    marks_obtained: float
    max_marks: float

class ReportTerm(BaseModel):
    term_id: int
    term_name: str
    cgpa: Optional[float] = None
    subjects: List[ReportLine] = []

class StudentReport(BaseModel):
    student: Optional[StudentOut] = None
    terms: List[ReportTerm] = []


# --- 6. Admission inquiries ---

class AdmissionInquiryOut(BaseModel):
    id: int
    student_name: str
    parent_email: str
    grade: str
    message: str
    created_at: datetime
    class Config:
        from_attributes = True


# --- 7. Dashboard & misc ---

class DashboardOut(BaseModel):
    email: str
    role: UserRole
    panel_title: str
    panel_description: str
    student_class: Optional[str] = None
    assignment_count: Optional[int] = None

class CourseOut(BaseModel):
    name: str
    grades: str
    description: str

class MessageResponse(BaseModel):
    message: str

class ErrorResponse(BaseModel):
    """A standardized schema for API error responses."""
    status_code: int
    detail: str
    error_code: Optional[str] = None # Optional machine-readable error code
