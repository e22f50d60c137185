from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from sqlalchemy.orm import Session

from school_app import crud, models, schemas
from school_app.dependencies import get_db, get_session_context, require_staff

router = APIRouter(
    prefix="/announcements",
    tags=["Announcements"]
)


def _get_editable_announcement(
    db: Session, announcement_id: int, ctx: schemas.SessionContext
) -> models.Announcement:
    """Only the author or an admin may change an announcement."""
    announcement = crud.get_announcement(db, announcement_id)
    if not announcement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Announcement not found")
    if ctx.role != models.UserRole.admin and announcement.created_by != ctx.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only change announcements you posted.",
        )
    return announcement


@router.get("", response_model=List[schemas.AnnouncementOut], summary="List announcements for the caller")
def list_announcements(
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(get_session_context),
):
    return crud.list_announcements(db, role=ctx.role)

@router.post(
    "",
    response_model=schemas.AnnouncementOut,
    status_code=status.HTTP_201_CREATED,
    summary="Post an announcement",
)
def create_announcement(
    announcement: schemas.AnnouncementCreate,
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(require_staff),
):
    return crud.create_announcement(db=db, announcement=announcement, created_by=ctx.user_id)

@router.patch(
    "/{announcement_id}",
    response_model=schemas.AnnouncementOut,
    summary="Edit an announcement",
)
def update_announcement(
    announcement_id: int,
    update: schemas.AnnouncementUpdate,
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(require_staff),
):
    announcement = _get_editable_announcement(db, announcement_id, ctx)
    return crud.update_announcement(db=db, db_announcement=announcement, update=update)

@router.delete(
    "/{announcement_id}",
    response_model=schemas.MessageResponse,
    summary="Delete an announcement",
)
def delete_announcement(
    announcement_id: int,
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(require_staff),
):
    announcement = _get_editable_announcement(db, announcement_id, ctx)
    db.delete(announcement)
    db.commit()
    return {"message": f"Announcement {announcement_id} deleted successfully."}
