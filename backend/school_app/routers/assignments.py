from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from sqlalchemy.orm import Session

from school_app import crud, models, schemas
from school_app.dependencies import get_db, get_session_context, require_staff

router = APIRouter(prefix="/assignments", tags=["Assignments"])

@router.get("", response_model=List[schemas.AssignmentOut], summary="List assignments")
def list_assignments(
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(get_session_context),
):
    """
    Students only see assignments for their own class; staff see all of them.
    Both lists are ordered by due date.
    """
    if ctx.is_staff:
        return crud.list_assignments(db)

    me = crud.get_student_by_email(db, ctx.email)
    if not me or not me.class_name:
        return []
    return crud.list_assignments(db, class_name=me.class_name)

@router.post(
    "",
    response_model=schemas.AssignmentOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create an assignment for a class",
)
def create_assignment(
    assignment: schemas.AssignmentCreate,
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(require_staff),
):
    return crud.create_assignment(db=db, assignment=assignment, created_by=ctx.user_id)

@router.delete(
    "/{assignment_id}",
    response_model=schemas.MessageResponse,
    summary="Delete an assignment",
)
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(require_staff),
):
    assignment = crud.get_assignment(db, assignment_id)
    if not assignment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    if ctx.role != models.UserRole.admin and assignment.created_by != ctx.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete assignments you created.",
        )
    db.delete(assignment)
    db.commit()
    return {"message": f"Assignment {assignment_id} deleted successfully."}
