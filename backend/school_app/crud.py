from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from school_app import models, schemas
from school_app.core.security import get_password_hash, verify_password

# --- User CRUD ---

def authenticate_user(db: Session, email: str, password: str) -> models.User | None:
    """
    Authenticates a user by checking their email and password.
    Returns the user object on success, None on failure.
    """
    user = get_user_by_email(db, email=email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user

def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(func.lower(models.User.email) == email.lower()).first()

def create_user(db: Session, user_data: schemas.RegisterRequest) -> models.User:
    db_user = models.User(
        email=user_data.email.lower(),
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user

# --- Student CRUD ---

def get_student_by_email(db: Session, email: str) -> models.Student | None:
    """Links a signed-in student account to its roster record."""
    return (
        db.query(models.Student)
        .filter(func.lower(models.Student.email) == email.strip().lower())
        .order_by(models.Student.id)
        .first()
    )

def list_students(db: Session) -> List[models.Student]:
    return (
        db.query(models.Student)
        .order_by(models.Student.class_name, models.Student.roll_no, models.Student.id)
        .all()
    )

def get_students_in_class(db: Session, class_name: str) -> List[models.Student]:
    """Students of one class in arrival order; callers apply roster ordering."""
    return (
        db.query(models.Student)
        .filter(models.Student.class_name == class_name)
        .order_by(models.Student.id)
        .all()
    )

def create_student(db: Session, student: schemas.StudentCreate) -> models.Student:
    db_student = models.Student(**student.model_dump())
    db.add(db_student)
    db.commit()
    db.refresh(db_student)
    return db_student

def delete_student(db: Session, student_id: int) -> models.Student | None:
    """Deletes a student together with their results and CGPA rows."""
    db_student = db.query(models.Student).filter(models.Student.id == student_id).first()
    if not db_student:
        return None
    db.delete(db_student)
    db.commit()
    return db_student

# --- Teacher CRUD ---

def list_teachers(db: Session) -> List[models.Teacher]:
    return db.query(models.Teacher).order_by(models.Teacher.first_name, models.Teacher.id).all()

def create_teacher(db: Session, teacher: schemas.TeacherCreate) -> models.Teacher:
    first_name, _, rest = teacher.name.partition(" ")
    db_teacher = models.Teacher(
        first_name=first_name,
        last_name=rest.strip() or None,
        subject=teacher.subject,
        email=teacher.email,
    )
    db.add(db_teacher)
    db.commit()
    db.refresh(db_teacher)
    return db_teacher

def delete_teacher(db: Session, teacher_id: int) -> models.Teacher | None:
    db_teacher = db.query(models.Teacher).filter(models.Teacher.id == teacher_id).first()
    if not db_teacher:
        return None
    db.delete(db_teacher)
    db.commit()
    return db_teacher

# --- Event CRUD ---

def list_events(db: Session) -> List[models.Event]:
    """Dated events first in calendar order, then undated ones; newest first within a date."""
    return (
        db.query(models.Event)
        .order_by(
            models.Event.date.is_(None),
            models.Event.date.asc(),
            models.Event.created_at.desc(),
            models.Event.id.desc(),
        )
        .all()
    )

def create_event(db: Session, event: schemas.EventCreate) -> models.Event:
    db_event = models.Event(**event.model_dump())
    db.add(db_event)
    db.commit()
    db.refresh(db_event)
    return db_event

def update_event(db: Session, event_id: int, event: schemas.EventUpdate) -> models.Event | None:
    db_event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if not db_event:
        return None
    for key, value in event.model_dump().items():
        setattr(db_event, key, value)
    db.commit()
    db.refresh(db_event)
    return db_event

def delete_event(db: Session, event_id: int) -> models.Event | None:
    db_event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if not db_event:
        return None
    db.delete(db_event)
    db.commit()
    return db_event

# --- Announcement CRUD ---

def list_announcements(db: Session, role: models.UserRole) -> List[models.Announcement]:
    query = db.query(models.Announcement)
    if role != models.UserRole.admin:
        # Teachers and students only see announcements meant for them
        query = query.filter(
            or_(
                models.Announcement.audience == models.Audience.all,
                models.Announcement.audience == models.Audience(role.value),
            )
        )
    return query.order_by(models.Announcement.created_at.desc(), models.Announcement.id.desc()).all()

def get_announcement(db: Session, announcement_id: int) -> models.Announcement | None:
    return db.query(models.Announcement).filter(models.Announcement.id == announcement_id).first()

def create_announcement(
    db: Session, announcement: schemas.AnnouncementCreate, created_by: int
) -> models.Announcement:
    db_announcement = models.Announcement(**announcement.model_dump(), created_by=created_by)
    db.add(db_announcement)
    db.commit()
    db.refresh(db_announcement)
    return db_announcement

def update_announcement(
    db: Session, db_announcement: models.Announcement, update: schemas.AnnouncementUpdate
) -> models.Announcement:
    for key, value in update.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(db_announcement, key, value)
    db.commit()
    db.refresh(db_announcement)
    return db_announcement

# --- Assignment CRUD ---

def list_assignments(db: Session, class_name: Optional[str] = None) -> List[models.Assignment]:
    query = db.query(models.Assignment)
    if class_name is not None:
        query = query.filter(models.Assignment.class_name == class_name)
    return query.order_by(
        models.Assignment.due_date.is_(None),
        models.Assignment.due_date.asc(),
        models.Assignment.id,
    ).all()

def count_assignments_for_class(db: Session, class_name: str) -> int:
    return db.query(models.Assignment).filter(models.Assignment.class_name == class_name).count()

def get_assignment(db: Session, assignment_id: int) -> models.Assignment | None:
    return db.query(models.Assignment).filter(models.Assignment.id == assignment_id).first()

def create_assignment(
    db: Session, assignment: schemas.AssignmentCreate, created_by: int
) -> models.Assignment:
    db_assignment = models.Assignment(**assignment.model_dump(), created_by=created_by)
    db.add(db_assignment)
    db.commit()
    db.refresh(db_assignment)
    return db_assignment

# --- Term & Subject CRUD ---

def list_terms(db: Session) -> List[models.Term]:
    return db.query(models.Term).order_by(models.Term.created_at, models.Term.id).all()

def create_term(db: Session, term: schemas.TermCreate) -> models.Term:
    db_term = models.Term(name=term.name)
    db.add(db_term)
    db.commit()
    db.refresh(db_term)
    return db_term

def get_term(db: Session, term_id: int) -> models.Term | None:
    return db.query(models.Term).filter(models.Term.id == term_id).first()

def list_subjects(db: Session, class_name: Optional[str] = None) -> List[models.Subject]:
    """All subjects by name, or those shared or tied to `class_name`."""
    query = db.query(models.Subject)
    if class_name:
        query = query.filter(
            or_(models.Subject.class_name.is_(None), models.Subject.class_name == class_name)
        )
    return query.order_by(models.Subject.name, models.Subject.id).all()

def create_subject(db: Session, subject: schemas.SubjectCreate) -> models.Subject:
    db_subject = models.Subject(**subject.model_dump())
    db.add(db_subject)
    db.commit()
    db.refresh(db_subject)
    return db_subject

def get_subject(db: Session, subject_id: int) -> models.Subject | None:
    return db.query(models.Subject).filter(models.Subject.id == subject_id).first()

# --- Result & CGPA reads ---

def get_results_for_students(
    db: Session, term_id: int, subject_id: int, student_ids: List[int]
) -> List[models.Result]:
    return (
        db.query(models.Result)
        .filter(
            models.Result.term_id == term_id,
            models.Result.subject_id == subject_id,
            models.Result.student_id.in_(student_ids),
        )
        .order_by(models.Result.id)
        .all()
    )

def get_term_cgpas_for_students(
    db: Session, term_id: int, student_ids: List[int]
) -> List[models.TermCgpa]:
    return (
        db.query(models.TermCgpa)
        .filter(models.TermCgpa.term_id == term_id, models.TermCgpa.student_id.in_(student_ids))
        .order_by(models.TermCgpa.id)
        .all()
    )

def get_results_for_student(db: Session, student_id: int) -> List[models.Result]:
    return (
        db.query(models.Result)
        .options(joinedload(models.Result.term), joinedload(models.Result.subject))
        .filter(models.Result.student_id == student_id)
        .order_by(models.Result.id)
        .all()
    )

def get_cgpas_for_student(db: Session, student_id: int) -> List[models.TermCgpa]:
    return db.query(models.TermCgpa).filter(models.TermCgpa.student_id == student_id).all()

# --- Admission inquiries ---

def create_admission_inquiry(
    db: Session, student_name: str, parent_email: str, grade: str, message: str
) -> models.AdmissionInquiry:
    db_inquiry = models.AdmissionInquiry(
        student_name=student_name,
        parent_email=parent_email,
        grade=grade,
        message=message,
        created_at=datetime.utcnow(),
    )
    db.add(db_inquiry)
    db.commit()
    db.refresh(db_inquiry)
    return db_inquiry

def list_admission_inquiries(db: Session) -> List[models.AdmissionInquiry]:
    return (
        db.query(models.AdmissionInquiry)
        .order_by(models.AdmissionInquiry.created_at.desc(), models.AdmissionInquiry.id.desc())
        .all()
    )
