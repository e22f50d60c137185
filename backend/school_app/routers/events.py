from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from sqlalchemy.orm import Session

from school_app import crud, schemas
from school_app.dependencies import get_db, require_admin

router = APIRouter(
    prefix="/events",
    tags=["Events"]
)

@router.get("", response_model=List[schemas.EventOut], summary="List upcoming events (public)")
def list_events(db: Session = Depends(get_db)):
    """
    Public listing used by both the website and the dashboard.
    Dated events come first in calendar order, undated ones last.
    """
    return crud.list_events(db)

@router.post(
    "",
    response_model=schemas.EventOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create an event",
    dependencies=[Depends(require_admin)],
)
def create_event(event: schemas.EventCreate, db: Session = Depends(get_db)):
    return crud.create_event(db=db, event=event)

@router.put(
    "/{event_id}",
    response_model=schemas.EventOut,
    summary="Update an event",
    dependencies=[Depends(require_admin)],
)
def update_event(event_id: int, event: schemas.EventUpdate, db: Session = Depends(get_db)):
    db_event = crud.update_event(db=db, event_id=event_id, event=event)
    if not db_event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return db_event

@router.delete(
    "/{event_id}",
    response_model=schemas.MessageResponse,
    summary="Delete an event",
    dependencies=[Depends(require_admin)],
)
def delete_event(event_id: int, db: Session = Depends(get_db)):
    if not crud.delete_event(db=db, event_id=event_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return {"message": f"Event {event_id} deleted successfully."}
