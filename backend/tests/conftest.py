import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "x" * 40)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from school_app import models
from school_app.core.security import create_access_token, get_password_hash
from school_app.db import Base
from school_app.dependencies import get_db
from school_app.main import app


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, email, role, password="password123"):
    user = models.User(email=email, hashed_password=get_password_hash(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(email):
    return {"Authorization": f"Bearer {create_access_token({'sub': email})}"}


@pytest.fixture
def admin_headers(db_session):
    make_user(db_session, "admin@school.org", models.UserRole.admin)
    return auth_headers("admin@school.org")


@pytest.fixture
def teacher_headers(db_session):
    make_user(db_session, "teacher@school.org", models.UserRole.teacher)
    return auth_headers("teacher@school.org")


@pytest.fixture
def student_headers(db_session):
    make_user(db_session, "asha@school.org", models.UserRole.student)
    return auth_headers("asha@school.org")


@pytest.fixture
def results_setup(db_session):
    """Class 5A with three students, one term and one subject."""
    term = models.Term(name="T1")
    subject = models.Subject(name="Math", class_name="5A")
    asha = models.Student(name="Asha", class_name="5A", roll_no="1", email="asha@school.org")
    ben = models.Student(name="Ben", class_name="5A", roll_no="2", email="ben@school.org")
    cara = models.Student(name="Cara", class_name="5A", roll_no=None, email="cara@school.org")
    other = models.Student(name="Dev", class_name="6B", roll_no="1", email="dev@school.org")
    db_session.add_all([term, subject, cara, ben, asha, other])
    db_session.commit()
    return {
        "term": term,
        "subject": subject,
        "asha": asha,
        "ben": ben,
        "cara": cara,
        "other": other,
    }
