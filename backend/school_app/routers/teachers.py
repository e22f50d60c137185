from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from sqlalchemy.orm import Session

from school_app import crud, schemas
from school_app.dependencies import get_db, get_session_context, require_admin

router = APIRouter(
    prefix="/teachers",
    tags=["Teachers"]
)

@router.get(
    "",
    response_model=List[schemas.TeacherOut],
    summary="List all teachers",
    dependencies=[Depends(get_session_context)],
)
def list_teachers(db: Session = Depends(get_db)):
    return crud.list_teachers(db)

@router.post(
    "",
    response_model=schemas.TeacherOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add a teacher",
    dependencies=[Depends(require_admin)],
)
def create_teacher(teacher: schemas.TeacherCreate, db: Session = Depends(get_db)):
    return crud.create_teacher(db=db, teacher=teacher)

@router.delete(
    "/{teacher_id}",
    response_model=schemas.MessageResponse,
    summary="Remove a teacher",
    dependencies=[Depends(require_admin)],
)
def delete_teacher(teacher_id: int, db: Session = Depends(get_db)):
    if not crud.delete_teacher(db=db, teacher_id=teacher_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Teacher with ID {teacher_id} not found.")
    return {"message": f"Teacher {teacher_id} deleted successfully."}
