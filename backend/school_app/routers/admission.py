import json
import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_app import crud, schemas
from school_app.dependencies import get_db, require_admin
from school_app.email_utils import send_admission_inquiry_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admissions"])

REQUIRED_FIELDS = ("studentName", "email", "grade", "message")


@router.post("/api/admission-inquiry", summary="Submit an admission inquiry (public)")
async def submit_admission_inquiry(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Stores the inquiry and then emails the admissions inbox and the
    submitter in the background. The email outcome never changes the
    response once the inquiry is stored.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None

    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content={"error": "Missing required fields"})

    values = {}
    for field in REQUIRED_FIELDS:
        value = body.get(field)
        if not isinstance(value, str) or not value.strip():
            return JSONResponse(status_code=400, content={"error": "Missing required fields"})
        values[field] = value.strip()

    try:
        inquiry = crud.create_admission_inquiry(
            db,
            student_name=values["studentName"],
            parent_email=values["email"],
            grade=values["grade"],
            message=values["message"],
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Error saving admission inquiry: {exc}")
        return JSONResponse(status_code=500, content={"error": "Failed to save inquiry"})

    logger.info(f"Admission inquiry {inquiry.id} stored for grade {inquiry.grade!r}")
    background_tasks.add_task(
        send_admission_inquiry_email,
        student_name=values["studentName"],
        email=values["email"],
        grade=values["grade"],
        message=values["message"],
    )
    return {"success": True}


@router.get(
    "/admission-inquiries",
    response_model=List[schemas.AdmissionInquiryOut],
    summary="[Admin] List admission inquiries, newest first",
    dependencies=[Depends(require_admin)],
)
def list_admission_inquiries(db: Session = Depends(get_db)):
    return crud.list_admission_inquiries(db)
