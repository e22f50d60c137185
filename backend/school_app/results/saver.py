import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_app import crud, models, schemas
from school_app.results.errors import SaveError, SaveInProgressError
from school_app.results.loader import check_selection
from school_app.results.roster import parse_number

logger = logging.getLogger(__name__)

SAVED_MESSAGE = "Results saved successfully."


class SaveGate:
    """Allows one save at a time per (term, class, subject) selection."""

    def __init__(self):
        self._lock = threading.Lock()
        self._active: Set[Tuple[int, str, int]] = set()

    @contextmanager
    def hold(self, selection: schemas.ResultsSelection) -> Iterator[None]:
        key = (selection.term_id, selection.class_name, selection.subject_id)
        with self._lock:
            if key in self._active:
                raise SaveInProgressError("A save for this selection is already in progress.")
            self._active.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(key)


save_gate = SaveGate()


def save_sheet(
    db: Session, sheet: schemas.ResultsSheet, gate: SaveGate = save_gate
) -> Tuple[schemas.ResultsSheet, str]:
    """
    Writes every complete, numeric mark and CGPA in `sheet`.

    Each write is committed on its own, so a failure leaves earlier rows
    saved. Failures are collected and raised together as SaveError once
    all rows have been attempted. Raises LoadError, before writing
    anything, when the selected term or subject does not exist. Returns
    the sheet with the identities of newly inserted rows filled in.
    """
    if sheet.selection is None or not sheet.rows:
        return sheet, "Nothing to save."

    selection = sheet.selection
    with gate.hold(selection):
        check_selection(db, selection)
        updated = sheet.model_copy(deep=True)
        try:
            roster_ids = {student.id for student in crud.get_students_in_class(db, selection.class_name)}
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Roster lookup before save failed: {exc}")
            raise SaveError("Failed to save results. Please try again.", failures=[], sheet=sheet) from exc
        rows = [row for row in updated.rows if row.student.id in roster_ids]
        failures: List[schemas.SaveFailure] = []

        marks_saved = 0
        for row in rows:
            marks_obtained = parse_number(row.mark.marks_obtained)
            max_marks = parse_number(row.mark.max_marks)
            if marks_obtained is None or max_marks is None:
                continue
            try:
                row.mark.result_id = _write_result(
                    db, selection, row.student.id, row.mark.result_id, marks_obtained, max_marks
                )
                marks_saved += 1
            except SQLAlchemyError as exc:
                db.rollback()
                logger.error(f"Saving marks failed for student {row.student.id}: {exc}")
                failures.append(_failure(row, "marks", exc))

        cgpa_saved = 0
        for row in rows:
            cgpa = parse_number(row.cgpa.value)
            if cgpa is None:
                continue
            try:
                row.cgpa.row_id = _upsert_term_cgpa(
                    db, selection.term_id, row.student.id, row.cgpa.row_id, cgpa
                )
                cgpa_saved += 1
            except SQLAlchemyError as exc:
                db.rollback()
                logger.error(f"Saving CGPA failed for student {row.student.id}: {exc}")
                failures.append(_failure(row, "cgpa", exc))

    logger.info(
        f"Results save: term={selection.term_id} class={selection.class_name!r} "
        f"subject={selection.subject_id} marks={marks_saved} cgpa={cgpa_saved} failed={len(failures)}"
    )
    if failures:
        names = ", ".join(sorted({failure.student_name for failure in failures}))
        raise SaveError(
            f"Failed to save results for: {names}. Other rows were saved; please try again.",
            failures=failures,
            sheet=updated,
        )
    return updated, SAVED_MESSAGE


def _failure(row: schemas.EditableRow, field_group: str, exc: Exception) -> schemas.SaveFailure:
    return schemas.SaveFailure(
        student_id=row.student.id,
        student_name=row.student.name,
        field_group=field_group,
        reason=exc.__class__.__name__,
    )


def _write_result(
    db: Session,
    selection: schemas.ResultsSelection,
    student_id: int,
    result_id: Optional[int],
    marks_obtained: float,
    max_marks: float,
) -> int:
    """Updates the known result, else the one for the natural key, else inserts."""
    record = None
    if result_id is not None:
        record = db.query(models.Result).filter(models.Result.id == result_id).first()
        if record is not None and (
            record.student_id != student_id
            or record.subject_id != selection.subject_id
            or record.term_id != selection.term_id
        ):
            record = None

    if record is None:
        record = db.query(models.Result).filter(
            models.Result.student_id == student_id,
            models.Result.subject_id == selection.subject_id,
            models.Result.term_id == selection.term_id,
        ).order_by(models.Result.id).first()

    if record is None:
        record = models.Result(
            student_id=student_id,
            subject_id=selection.subject_id,
            term_id=selection.term_id,
        )
        db.add(record)

    record.marks_obtained = marks_obtained
    record.max_marks = max_marks
    db.commit()
    db.refresh(record)
    return record.id


def _upsert_term_cgpa(
    db: Session, term_id: int, student_id: int, row_id: Optional[int], cgpa: float
) -> int:
    """Upsert keyed on (student, term); a known row id is used when it still matches."""
    record = None
    if row_id is not None:
        record = db.query(models.TermCgpa).filter(
            models.TermCgpa.id == row_id,
            models.TermCgpa.student_id == student_id,
            models.TermCgpa.term_id == term_id,
        ).first()

    if record is None:
        record = db.query(models.TermCgpa).filter(
            models.TermCgpa.student_id == student_id,
            models.TermCgpa.term_id == term_id,
        ).first()

    if record is None:
        record = models.TermCgpa(student_id=student_id, term_id=term_id)
        db.add(record)

    record.cgpa = cgpa
    db.commit()
    db.refresh(record)
    return record.id
