from sqlalchemy import (
    Column, Integer, String, Enum as SQLAlchemyEnum, ForeignKey,
    Float, Date, DateTime, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship
import enum
from datetime import datetime

from school_app.db import Base

# --- ENUMS for consistent data types ---

class UserRole(str, enum.Enum):
    student = "student"
    teacher = "teacher"
    admin = "admin"


class Audience(str, enum.Enum):
    all = "all"
    teacher = "teacher"
    student = "student"


# --- Accounts ---

class User(Base):
    """The central account model for authentication."""
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(SQLAlchemyEnum(UserRole), nullable=False, default=UserRole.student)
    created_at = Column(DateTime, default=datetime.utcnow)


# --- People ---

class Student(Base):
    """
    A roster entry. Student accounts are linked to this record by email,
    so a record can exist long before the student ever signs in.
    """
    __tablename__ = "students"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    class_name = Column("class", String, nullable=True, index=True)
    roll_no = Column(String, nullable=True)
    email = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    results = relationship("Result", back_populates="student", cascade="all, delete-orphan")
    term_cgpas = relationship("TermCgpa", back_populates="student", cascade="all, delete-orphan")


class Teacher(Base):
    __tablename__ = "teachers"
    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    subject = Column(String, nullable=True)
    email = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


# --- Academic structure ---

class Term(Base):
    __tablename__ = "terms"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Subject(Base):
    __tablename__ = "subjects"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # NULL means the subject is shared by every class
    class_name = Column("class", String, nullable=True)


class Result(Base):
    """Marks for one (student, subject, term). Uniqueness is kept by the results engine."""
    __tablename__ = "results"
    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    term_id = Column(Integer, ForeignKey("terms.id"), nullable=False)
    marks_obtained = Column(Float, nullable=False)
    max_marks = Column(Float, nullable=False)

    student = relationship("Student", back_populates="results")
    subject = relationship("Subject")
    term = relationship("Term")


class TermCgpa(Base):
    __tablename__ = "term_cgpa"
    __table_args__ = (
        UniqueConstraint("student_id", "term_id", name="uq_term_cgpa_student_term"),
    )
    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    term_id = Column(Integer, ForeignKey("terms.id"), nullable=False)
    cgpa = Column(Float, nullable=False)

    student = relationship("Student", back_populates="term_cgpas")
    term = relationship("Term")


# --- School life ---

class Event(Base):
    __tablename__ = "events"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    month_short = Column(String, nullable=False)
    date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Announcement(Base):
    __tablename__ = "announcements"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    audience = Column(SQLAlchemyEnum(Audience), nullable=False, default=Audience.all)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    author = relationship("User")


class Assignment(Base):
    __tablename__ = "assignments"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    class_name = Column("class", String, nullable=False, index=True)
    due_date = Column(Date, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    author = relationship("User")


class AdmissionInquiry(Base):
    __tablename__ = "admission_inquiries"
    id = Column(Integer, primary_key=True, index=True)
    student_name = Column(String, nullable=False)
    parent_email = Column(String, nullable=False)
    grade = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)
