import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_app import crud, models, schemas
from school_app.results.errors import LoadError
from school_app.results.roster import format_number, sort_roster

logger = logging.getLogger(__name__)


def load_sheet(
    db: Session,
    term_id: Optional[int],
    class_name: Optional[str],
    subject_id: Optional[int],
) -> schemas.ResultsSheet:
    """
    Builds the editable sheet for a (term, class, subject) selection.

    Returns an idle sheet when any part of the selection is missing. Raises
    LoadError when the roster cannot be fetched. Existing marks and CGPA
    that fail to load are treated as absent so the roster is still editable.
    """
    if not term_id or not class_name or not subject_id:
        return schemas.ResultsSheet()

    selection = schemas.ResultsSelection(term_id=term_id, class_name=class_name, subject_id=subject_id)
    check_selection(db, selection)

    try:
        roster = sort_roster(crud.get_students_in_class(db, class_name))
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Roster load failed for class {class_name!r}: {exc}")
        raise LoadError("Unable to load students for the selected class.") from exc

    if not roster:
        return schemas.ResultsSheet(selection=selection, rows=[])

    student_ids = [student.id for student in roster]
    results_by_student = _first_per_student(_load_results(db, term_id, subject_id, student_ids))
    cgpa_by_student = _first_per_student(_load_cgpas(db, term_id, student_ids))

    rows = []
    for student in roster:
        result = results_by_student.get(student.id)
        cgpa = cgpa_by_student.get(student.id)
        rows.append(
            schemas.EditableRow(
                student=schemas.StudentOut.model_validate(student),
                mark=schemas.EditableMark(
                    result_id=result.id if result else None,
                    marks_obtained=format_number(result.marks_obtained) if result else "",
                    max_marks=format_number(result.max_marks) if result else "",
                ),
                cgpa=schemas.EditableCgpa(
                    row_id=cgpa.id if cgpa else None,
                    value=format_number(cgpa.cgpa) if cgpa else "",
                ),
            )
        )

    logger.info(
        f"Loaded results sheet: term={term_id} class={class_name!r} subject={subject_id} "
        f"students={len(rows)} with_marks={len(results_by_student)}"
    )
    return schemas.ResultsSheet(selection=selection, rows=rows)


def check_selection(db: Session, selection: schemas.ResultsSelection) -> None:
    """Raises LoadError unless the selected term and subject both exist."""
    try:
        term = crud.get_term(db, selection.term_id)
        subject = crud.get_subject(db, selection.subject_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Term/subject lookup failed: {exc}")
        raise LoadError("Unable to load terms and subjects.") from exc

    if term is None or subject is None:
        logger.warning(
            f"Rejected results selection: term={selection.term_id} subject={selection.subject_id} not found"
        )
        raise LoadError("The selected term or subject no longer exists.")


def _load_results(db: Session, term_id: int, subject_id: int, student_ids: List[int]) -> List[models.Result]:
    try:
        return crud.get_results_for_students(db, term_id, subject_id, student_ids)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(f"Existing marks could not be loaded, continuing without them: {exc}")
        return []


def _load_cgpas(db: Session, term_id: int, student_ids: List[int]) -> List[models.TermCgpa]:
    try:
        return crud.get_term_cgpas_for_students(db, term_id, student_ids)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(f"Existing CGPA could not be loaded, continuing without it: {exc}")
        return []


def _first_per_student(records) -> Dict[int, object]:
    by_student = {}
    for record in records:
        by_student.setdefault(record.student_id, record)
    return by_student


def load_options(db: Session) -> schemas.ResultsOptions:
    """Terms, subjects and the classes that have at least one subject."""
    try:
        terms = crud.list_terms(db)
        subjects = crud.list_subjects(db)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Reference data load failed: {exc}")
        raise LoadError("Unable to load terms and subjects.") from exc

    classes = sorted({subject.class_name for subject in subjects if subject.class_name})
    return schemas.ResultsOptions(
        terms=[schemas.TermOut.model_validate(term) for term in terms],
        subjects=[schemas.SubjectOut.model_validate(subject) for subject in subjects],
        classes=classes,
    )


def build_student_report(db: Session, email: str) -> schemas.StudentReport:
    """
    All marks for the student whose roster email matches `email`, grouped
    by term in the order the terms first appear, with each term's CGPA.
    """
    student = crud.get_student_by_email(db, email)
    if not student:
        return schemas.StudentReport()

    results = crud.get_results_for_student(db, student.id)
    cgpa_by_term = {row.term_id: row.cgpa for row in crud.get_cgpas_for_student(db, student.id)}

    terms: Dict[int, schemas.ReportTerm] = {}
    for result in results:
        report_term = terms.get(result.term_id)
        if report_term is None:
            report_term = schemas.ReportTerm(
                term_id=result.term_id,
                term_name=result.term.name if result.term else "",
                cgpa=cgpa_by_term.get(result.term_id),
            )
            terms[result.term_id] = report_term
        report_term.subjects.append(
            schemas.ReportLine(
                subject_name=result.subject.name if result.subject else "",
                marks_obtained=result.marks_obtained,
                max_marks=result.max_marks,
            )
        )

    return schemas.StudentReport(
        student=schemas.StudentOut.model_validate(student),
        terms=list(terms.values()),
    )
