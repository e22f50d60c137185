from datetime import datetime, timezone

import pytest

from school_app import schemas
from school_app.results import csv_io
from school_app.results.errors import FormatError


def make_sheet(*students, class_name="5A"):
    rows = []
    for student_id, name, roll_no, email in students:
        rows.append(
            schemas.EditableRow(
                student=schemas.StudentOut(
                    id=student_id, name=name, class_name=class_name, roll_no=roll_no, email=email
                )
            )
        )
    return schemas.ResultsSheet(
        selection=schemas.ResultsSelection(term_id=7, class_name=class_name, subject_id=3),
        rows=rows,
    )


@pytest.fixture
def sheet():
    return make_sheet(
        (11, "Asha", "1", "asha@school.org"),
        (12, "Ben", "2", "ben@school.org"),
        (13, "Cara", None, "Cara@School.org"),
    )


# --- Import ---

def test_import_matches_by_roll_number(sheet):
    updated = csv_io.apply_import("roll_no,marks_obtained,max_marks\n1,80,100\n2,abc,100", sheet)

    assert updated.rows[0].mark.marks_obtained == "80"
    assert updated.rows[0].mark.max_marks == "100"
    # No numeric validation at import time
    assert updated.rows[1].mark.marks_obtained == "abc"
    assert updated.rows[2].mark.marks_obtained == ""


def test_import_does_not_modify_the_input_sheet(sheet):
    csv_io.apply_import("roll_no,marks_obtained,max_marks\n1,80,100", sheet)
    assert sheet.rows[0].mark.marks_obtained == ""


def test_import_falls_back_to_case_insensitive_email(sheet):
    csv_text = "email,marks_obtained,max_marks\ncara@school.ORG,55,60"
    updated = csv_io.apply_import(csv_text, sheet)
    assert updated.rows[2].mark.marks_obtained == "55"
    assert updated.rows[2].mark.max_marks == "60"


def test_import_falls_back_to_email_when_roll_number_is_unknown(sheet):
    csv_text = "roll_no,email,marks_obtained,max_marks\n99,ben@school.org,41,50"
    updated = csv_io.apply_import(csv_text, sheet)
    assert updated.rows[1].mark.marks_obtained == "41"


def test_import_roll_number_takes_precedence_over_email(sheet):
    csv_text = "roll_no,email,marks_obtained,max_marks\n1,ben@school.org,90,100"
    updated = csv_io.apply_import(csv_text, sheet)
    assert updated.rows[0].mark.marks_obtained == "90"
    assert updated.rows[1].mark.marks_obtained == ""


def test_import_skips_unmatched_rows(sheet):
    updated = csv_io.apply_import("roll_no,marks_obtained,max_marks\n42,10,20", sheet)
    assert updated == sheet


def test_import_keeps_persisted_identities_and_roster_order(sheet):
    sheet.rows[0].mark.result_id = 501
    sheet.rows[0].cgpa.row_id = 601
    sheet.rows[0].cgpa.value = "7.5"

    updated = csv_io.apply_import("roll_no,marks_obtained,max_marks,cgpa_term\n1,66,100,8.1", sheet)

    assert [row.student.id for row in updated.rows] == [11, 12, 13]
    assert updated.rows[0].mark.result_id == 501
    assert updated.rows[0].cgpa.row_id == 601
    assert updated.rows[0].cgpa.value == "8.1"


def test_import_leaves_cgpa_alone_when_blank_or_missing(sheet):
    sheet.rows[0].cgpa.value = "7.5"
    sheet.rows[1].cgpa.value = "6.0"

    updated = csv_io.apply_import(
        "roll_no,marks_obtained,max_marks,cgpa_term\n1,66,100,\n2,70,100", sheet
    )

    assert updated.rows[0].cgpa.value == "7.5"
    assert updated.rows[1].cgpa.value == "6.0"


def test_import_header_is_case_insensitive_and_order_free(sheet):
    csv_text = "Max_Marks , MARKS_OBTAINED, Roll_No\r\n\r\n100,77,2\r\n"
    updated = csv_io.apply_import(csv_text, sheet)
    assert updated.rows[1].mark.marks_obtained == "77"
    assert updated.rows[1].mark.max_marks == "100"


def test_import_supports_quoted_fields(sheet):
    csv_text = 'email,note,marks_obtained,max_marks\nasha@school.org,"late, excused",30,50'
    updated = csv_io.apply_import(csv_text, sheet)
    assert updated.rows[0].mark.marks_obtained == "30"
    assert updated.rows[0].mark.max_marks == "50"


def test_import_strips_byte_order_mark(sheet):
    updated = csv_io.apply_import("\ufeffroll_no,marks_obtained,max_marks\n1,12,20", sheet)
    assert updated.rows[0].mark.marks_obtained == "12"


@pytest.mark.parametrize(
    "csv_text, message",
    [
        ("", "CSV file is empty."),
        ("\n  \n\r\n", "CSV file is empty."),
        ("roll_no,marks_obtained\n1,50", "CSV must include at least marks_obtained and max_marks columns."),
        ("name,marks_obtained,max_marks\nAsha,50,100", "CSV must include roll_no and/or email column to match students."),
    ],
)
def test_import_format_errors(sheet, csv_text, message):
    with pytest.raises(FormatError) as excinfo:
        csv_io.apply_import(csv_text, sheet)
    assert excinfo.value.message == message


# --- Export ---

def test_export_writes_header_and_rows_in_roster_order(sheet):
    sheet.rows[0].mark.marks_obtained = "80"
    sheet.rows[0].mark.max_marks = "100"
    sheet.rows[1].cgpa.value = " 8.5 "

    lines = csv_io.export_csv(sheet).split("\n")

    assert lines[0] == "student_id,name,class,roll_no,subject_id,term_id,marks_obtained,max_marks,cgpa_term"
    assert lines[1] == "11,Asha,5A,1,3,7,80,100,"
    assert lines[2] == "12,Ben,5A,2,3,7,,,8.5"
    assert lines[3] == "13,Cara,5A,,3,7,,,"
    assert len(lines) == 4


def test_export_quotes_only_fields_with_commas_or_quotes():
    sheet = make_sheet((1, 'Rao, "Sunny"', "4", None), (2, "Plain Name", "5", None))
    lines = csv_io.export_csv(sheet).split("\n")
    assert lines[1] == '1,"Rao, ""Sunny""",5A,4,3,7,,,'
    assert lines[2] == "2,Plain Name,5A,5,3,7,,,"


def test_sample_uses_first_three_students_with_fallbacks():
    sheet = make_sheet(
        (1, "A", "1", "a@school.org"),
        (2, "B", None, None),
        (3, "C", "3", "c@school.org"),
        (4, "D", "4", "d@school.org"),
    )
    assert csv_io.export_sample_csv(sheet).split("\n") == [
        "roll_no,email,marks_obtained,max_marks,cgpa_term",
        "1,a@school.org,80,100,8.5",
        "1,student@example.com,80,100,8.5",
        "3,c@school.org,80,100,8.5",
    ]


def test_sample_uses_placeholders_for_empty_roster():
    assert csv_io.export_sample_csv(schemas.ResultsSheet()).split("\n") == [
        "roll_no,email,marks_obtained,max_marks,cgpa_term",
        "1,student1@example.com,80,100,8.5",
        "2,student2@example.com,75,100,8.0",
    ]


def test_export_filenames():
    now = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=timezone.utc)
    assert csv_io.export_filename("5A", now) == "results-5A-2024-03-05T14-07-09-123Z.csv"
    assert csv_io.export_filename(None, now) == "results-class-2024-03-05T14-07-09-123Z.csv"
    assert csv_io.sample_filename("5A") == "sample-results-5A.csv"
    assert csv_io.sample_filename("") == "sample-results-class.csv"
