"""
CSV import and export for the results sheet.

Import matches each uploaded row to a roster student (roll number first,
then email, both case-insensitive) and overwrites only that student's
edit text. Export writes the current edit text, saved or not.
"""
import csv
import io
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from school_app import schemas
from school_app.results.errors import FormatError

logger = logging.getLogger(__name__)

EXPORT_HEADER = [
    "student_id",
    "name",
    "class",
    "roll_no",
    "subject_id",
    "term_id",
    "marks_obtained",
    "max_marks",
    "cgpa_term",
]

SAMPLE_HEADER = ["roll_no", "email", "marks_obtained", "max_marks", "cgpa_term"]

SAMPLE_PLACEHOLDER_ROWS = [
    ["1", "student1@example.com", "80", "100", "8.5"],
    ["2", "student2@example.com", "75", "100", "8.0"],
]


# ===================================================================
# Import
# ===================================================================

def _read_rows(csv_text: str) -> List[List[str]]:
    """Parses CSV text into rows of trimmed cells, dropping blank lines."""
    if csv_text.startswith("\ufeff"):
        csv_text = csv_text[1:]
    rows = []
    for cells in csv.reader(io.StringIO(csv_text)):
        cells = [cell.strip() for cell in cells]
        if any(cells):
            rows.append(cells)
    return rows


def _cell(cells: List[str], index: Optional[int]) -> str:
    if index is None or index >= len(cells):
        return ""
    return cells[index]


def apply_import(csv_text: str, sheet: schemas.ResultsSheet) -> schemas.ResultsSheet:
    """
    Returns a copy of `sheet` with uploaded marks applied to matched students.

    Raises FormatError when the file is empty or the header lacks the
    required columns; `sheet` itself is never modified.
    """
    try:
        rows = _read_rows(csv_text)
    except csv.Error as exc:
        raise FormatError("Failed to import CSV. Please check the format.") from exc

    if not rows:
        raise FormatError("CSV file is empty.")

    header = {name.lower(): index for index, name in reversed(list(enumerate(rows[0])))}
    idx_roll = header.get("roll_no")
    idx_email = header.get("email")
    idx_marks = header.get("marks_obtained")
    idx_max = header.get("max_marks")
    idx_cgpa = header.get("cgpa_term")

    if idx_marks is None or idx_max is None:
        raise FormatError("CSV must include at least marks_obtained and max_marks columns.")
    if idx_roll is None and idx_email is None:
        raise FormatError("CSV must include roll_no and/or email column to match students.")

    updated = sheet.model_copy(deep=True)

    by_roll: Dict[str, schemas.EditableRow] = {}
    by_email: Dict[str, schemas.EditableRow] = {}
    for row in updated.rows:
        # Later duplicates win, matching a plain key -> student lookup table
        if row.student.roll_no and row.student.roll_no.strip():
            by_roll[row.student.roll_no.strip().lower()] = row
        if row.student.email and row.student.email.strip():
            by_email[row.student.email.strip().lower()] = row

    matched = 0
    for cells in rows[1:]:
        roll_value = _cell(cells, idx_roll)
        email_value = _cell(cells, idx_email)

        target = by_roll.get(roll_value.lower()) if roll_value else None
        if target is None and email_value:
            target = by_email.get(email_value.lower())
        if target is None:
            continue

        target.mark.marks_obtained = _cell(cells, idx_marks)
        target.mark.max_marks = _cell(cells, idx_max)

        cgpa_value = _cell(cells, idx_cgpa)
        if cgpa_value:
            target.cgpa.value = cgpa_value
        matched += 1

    logger.info(f"CSV import applied: data_rows={len(rows) - 1} matched={matched}")
    return updated


# ===================================================================
# Export
# ===================================================================

def _write_csv(rows: List[List[str]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerows(rows)
    return output.getvalue().rstrip("\n")


def export_csv(sheet: schemas.ResultsSheet) -> str:
    """The sheet as CSV in roster order, with the unsaved edit text as values."""
    selection = sheet.selection
    subject_id = str(selection.subject_id) if selection else ""
    term_id = str(selection.term_id) if selection else ""

    rows = [EXPORT_HEADER]
    for row in sheet.rows:
        student = row.student
        rows.append([
            str(student.id),
            student.name,
            student.class_name or "",
            student.roll_no or "",
            subject_id,
            term_id,
            row.mark.marks_obtained.strip(),
            row.mark.max_marks.strip(),
            row.cgpa.value.strip(),
        ])
    return _write_csv(rows)


def export_sample_csv(sheet: schemas.ResultsSheet) -> str:
    """A fill-in template using up to three real students, or placeholders."""
    rows = [SAMPLE_HEADER]
    examples = sheet.rows[:3]
    if examples:
        for row in examples:
            rows.append([
                row.student.roll_no or "1",
                row.student.email or "student@example.com",
                "80",
                "100",
                "8.5",
            ])
    else:
        rows.extend(SAMPLE_PLACEHOLDER_ROWS)
    return _write_csv(rows)


def export_filename(class_name: Optional[str], now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    timestamp = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    timestamp = timestamp.replace(":", "-").replace(".", "-")
    return f"results-{class_name or 'class'}-{timestamp}.csv"


def sample_filename(class_name: Optional[str]) -> str:
    return f"sample-results-{class_name or 'class'}.csv"
