from fastapi import APIRouter, Depends, status
from typing import List, Optional
from sqlalchemy.orm import Session

from school_app import crud, schemas
from school_app.dependencies import get_db, get_session_context, require_admin

router = APIRouter(tags=["Terms & Subjects"])

# --- Terms ---

@router.get(
    "/terms",
    response_model=List[schemas.TermOut],
    summary="List terms in the order they were created",
    dependencies=[Depends(get_session_context)],
)
def list_terms(db: Session = Depends(get_db)):
    return crud.list_terms(db)

@router.post(
    "/terms",
    response_model=schemas.TermOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a term",
    dependencies=[Depends(require_admin)],
)
def create_term(term: schemas.TermCreate, db: Session = Depends(get_db)):
    return crud.create_term(db=db, term=term)

# --- Subjects ---

@router.get(
    "/subjects",
    response_model=List[schemas.SubjectOut],
    summary="List subjects, optionally only those taught in one class",
    dependencies=[Depends(get_session_context)],
)
def list_subjects(class_name: Optional[str] = None, db: Session = Depends(get_db)):
    """
    With `class_name`, returns the subjects tied to that class plus the
    subjects shared by every class.
    """
    return crud.list_subjects(db, class_name=class_name)

@router.post(
    "/subjects",
    response_model=schemas.SubjectOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a subject",
    dependencies=[Depends(require_admin)],
)
def create_subject(subject: schemas.SubjectCreate, db: Session = Depends(get_db)):
    return crud.create_subject(db=db, subject=subject)
