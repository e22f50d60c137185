from fastapi import APIRouter
from typing import List

from school_app import schemas

router = APIRouter(tags=["Public"])

COURSES = [
    schemas.CourseOut(
        name="Primary School",
        grades="Grades 1-5",
        description="Foundations in literacy, numeracy, science and the arts.",
    ),
    schemas.CourseOut(
        name="Middle School",
        grades="Grades 6-8",
        description="Subject specialist teaching with projects and clubs.",
    ),
    schemas.CourseOut(
        name="High School",
        grades="Grades 9-12",
        description="Board exam preparation with science, commerce and humanities streams.",
    ),
]


@router.get("/")
def home():
    return {"message": "School portal backend is running!"}


@router.get("/courses", response_model=List[schemas.CourseOut], summary="Course catalogue (public)")
def list_courses():
    return COURSES
