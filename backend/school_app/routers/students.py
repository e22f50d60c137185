from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from sqlalchemy.orm import Session

from school_app import crud, schemas
from school_app.dependencies import get_db, get_session_context, require_admin
from school_app.results.roster import sort_roster

router = APIRouter(
    prefix="/students",
    tags=["Students"]
)

@router.get("", response_model=List[schemas.StudentOut], summary="List students visible to the caller")
def list_students(
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(get_session_context),
):
    """
    Staff see the whole school ordered by class. A student sees the
    classmates of their own class ordered by roll number, or nothing when
    their account is not linked to a roster entry.
    """
    if ctx.is_staff:
        return crud.list_students(db)

    me = crud.get_student_by_email(db, ctx.email)
    if not me or not me.class_name:
        return []
    return sort_roster(crud.get_students_in_class(db, me.class_name))

@router.post(
    "",
    response_model=schemas.StudentOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add a student",
    dependencies=[Depends(require_admin)],
)
def create_student(student: schemas.StudentCreate, db: Session = Depends(get_db)):
    return crud.create_student(db=db, student=student)

@router.delete(
    "/{student_id}",
    response_model=schemas.MessageResponse,
    summary="Remove a student and their results",
    dependencies=[Depends(require_admin)],
)
def delete_student(student_id: int, db: Session = Depends(get_db)):
    if not crud.delete_student(db=db, student_id=student_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_id} not found.")
    return {"message": f"Student {student_id} deleted successfully."}
