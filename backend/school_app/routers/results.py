import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from school_app import schemas
from school_app.dependencies import get_db, require_staff, require_student
from school_app.results import csv_io, loader, saver
from school_app.results.errors import FormatError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/results", tags=["Results"])


def _csv_attachment(content: str, filename: str) -> StreamingResponse:
    response = StreamingResponse(iter([content]), media_type="text/csv; charset=utf-8")
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


# ===================================================================
# Staff: editing marks and CGPA
# ===================================================================

@router.get(
    "/options",
    response_model=schemas.ResultsOptions,
    summary="Terms, subjects and classes for the selection controls",
    dependencies=[Depends(require_staff)],
)
def get_results_options(db: Session = Depends(get_db)):
    return loader.load_options(db)

@router.get(
    "/sheet",
    response_model=schemas.ResultsSheet,
    summary="Load the editable results sheet for a term, class and subject",
    dependencies=[Depends(require_staff)],
)
def get_results_sheet(
    term_id: Optional[int] = None,
    class_name: Optional[str] = None,
    subject_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """
    Returns one row per student in the class, pre-filled with any saved
    marks and CGPA. While the selection is incomplete the sheet is idle.
    """
    return loader.load_sheet(db, term_id=term_id, class_name=class_name, subject_id=subject_id)

@router.post(
    "/import",
    response_model=schemas.ResultsSheet,
    summary="Apply an uploaded CSV of marks to the sheet",
    dependencies=[Depends(require_staff)],
)
async def import_results_csv(
    file: UploadFile = File(...),
    sheet: str = Form(..., description="The current sheet as JSON"),
):
    """
    Matches CSV rows to students by roll number, then email. Nothing is
    saved: the updated sheet is returned for review before saving.
    """
    try:
        current = schemas.ResultsSheet.model_validate_json(sheet)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc

    raw = await file.read()
    try:
        csv_text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FormatError("Unable to read CSV file.") from exc

    logger.info(f"Importing results CSV '{file.filename}' ({len(raw)} bytes)")
    return csv_io.apply_import(csv_text, current)

@router.post(
    "/save",
    response_model=schemas.SaveResponse,
    summary="Save every complete mark and CGPA in the sheet",
    dependencies=[Depends(require_staff)],
)
def save_results(sheet: schemas.ResultsSheet, db: Session = Depends(get_db)):
    saved_sheet, message = saver.save_sheet(db, sheet)
    return {"sheet": saved_sheet, "message": message}

@router.post(
    "/export",
    summary="Download the sheet as CSV",
    dependencies=[Depends(require_staff)],
)
def export_results_csv(sheet: schemas.ResultsSheet):
    class_name = sheet.selection.class_name if sheet.selection else None
    return _csv_attachment(csv_io.export_csv(sheet), csv_io.export_filename(class_name))

@router.post(
    "/sample",
    summary="Download a sample CSV for importing marks",
    dependencies=[Depends(require_staff)],
)
def export_sample_csv(sheet: schemas.ResultsSheet):
    class_name = sheet.selection.class_name if sheet.selection else None
    return _csv_attachment(csv_io.export_sample_csv(sheet), csv_io.sample_filename(class_name))


# ===================================================================
# Student: own report card
# ===================================================================

@router.get(
    "/me",
    response_model=schemas.StudentReport,
    summary="The signed-in student's marks and CGPA by term",
)
def get_my_results(
    db: Session = Depends(get_db),
    ctx: schemas.SessionContext = Depends(require_student),
):
    return loader.build_student_report(db, ctx.email)
