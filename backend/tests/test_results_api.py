import json

from sqlalchemy.exc import SQLAlchemyError

from school_app import crud, schemas
from school_app.results import saver


def _sheet_params(setup):
    return {
        "term_id": setup["term"].id,
        "class_name": "5A",
        "subject_id": setup["subject"].id,
    }


def test_results_endpoints_require_staff(client, results_setup, student_headers):
    assert client.get("/results/options").status_code == 401
    response = client.get("/results/sheet", params=_sheet_params(results_setup), headers=student_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Requires admin or teacher role"


def test_options_and_sheet(client, results_setup, teacher_headers):
    options = client.get("/results/options", headers=teacher_headers).json()
    assert options["classes"] == ["5A"]
    assert options["terms"][0]["name"] == "T1"

    sheet = client.get("/results/sheet", params=_sheet_params(results_setup), headers=teacher_headers).json()
    assert sheet["selection"]["class_name"] == "5A"
    assert [row["student"]["name"] for row in sheet["rows"]] == ["Asha", "Ben", "Cara"]


def test_sheet_is_idle_until_selection_is_complete(client, results_setup, teacher_headers):
    response = client.get("/results/sheet", params={"class_name": "5A"}, headers=teacher_headers)
    assert response.status_code == 200
    assert response.json() == {"selection": None, "rows": []}


def test_import_save_and_export_flow(client, results_setup, teacher_headers):
    sheet = client.get("/results/sheet", params=_sheet_params(results_setup), headers=teacher_headers).json()

    response = client.post(
        "/results/import",
        headers=teacher_headers,
        data={"sheet": json.dumps(sheet)},
        files={"file": ("marks.csv", b"roll_no,marks_obtained,max_marks\n1,80,100\n2,abc,100", "text/csv")},
    )
    assert response.status_code == 200
    imported = response.json()
    assert imported["rows"][0]["mark"]["marks_obtained"] == "80"
    assert imported["rows"][1]["mark"]["marks_obtained"] == "abc"

    response = client.post("/results/save", headers=teacher_headers, json=imported)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == saver.SAVED_MESSAGE
    assert body["sheet"]["rows"][0]["mark"]["result_id"] is not None

    response = client.post("/results/export", headers=teacher_headers, json=body["sheet"])
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="results-5A-')
    asha = results_setup["asha"]
    first_line = response.text.split("\n")[1]
    assert first_line == (
        f"{asha.id},Asha,5A,1,{results_setup['subject'].id},{results_setup['term'].id},80,100,"
    )


def test_import_rejects_bad_csv(client, results_setup, teacher_headers):
    sheet = client.get("/results/sheet", params=_sheet_params(results_setup), headers=teacher_headers).json()

    response = client.post(
        "/results/import",
        headers=teacher_headers,
        data={"sheet": json.dumps(sheet)},
        files={"file": ("marks.csv", b"roll_no,marks_obtained\n1,50", "text/csv")},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "CSV must include at least marks_obtained and max_marks columns."}

    response = client.post(
        "/results/import",
        headers=teacher_headers,
        data={"sheet": json.dumps(sheet)},
        files={"file": ("marks.csv", b"\xff\xfe\x00bad", "text/csv")},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Unable to read CSV file."}


def test_import_rejects_malformed_sheet(client, results_setup, teacher_headers):
    response = client.post(
        "/results/import",
        headers=teacher_headers,
        data={"sheet": "{not json"},
        files={"file": ("marks.csv", b"roll_no,marks_obtained,max_marks\n1,80,100", "text/csv")},
    )
    assert response.status_code == 422


def test_sample_download(client, results_setup, admin_headers):
    sheet = client.get("/results/sheet", params=_sheet_params(results_setup), headers=admin_headers).json()

    response = client.post("/results/sample", headers=admin_headers, json=sheet)

    assert response.status_code == 200
    assert 'filename="sample-results-5A.csv"' in response.headers["content-disposition"]
    assert response.text.split("\n")[1] == "1,asha@school.org,80,100,8.5"


def test_save_conflict_returns_409(client, results_setup, teacher_headers):
    sheet = client.get("/results/sheet", params=_sheet_params(results_setup), headers=teacher_headers).json()
    selection = schemas.ResultsSelection(**sheet["selection"])

    with saver.save_gate.hold(selection):
        response = client.post("/results/save", headers=teacher_headers, json=sheet)

    assert response.status_code == 409
    assert "already in progress" in response.json()["error"]


def test_save_failure_lists_students(client, results_setup, teacher_headers, monkeypatch):
    def broken_write(*args):
        raise SQLAlchemyError("write failed")

    monkeypatch.setattr(saver, "_write_result", broken_write)
    sheet = client.get("/results/sheet", params=_sheet_params(results_setup), headers=teacher_headers).json()
    sheet["rows"][1]["mark"].update(marks_obtained="40", max_marks="50")

    response = client.post("/results/save", headers=teacher_headers, json=sheet)

    assert response.status_code == 500
    body = response.json()
    assert body["error"].startswith("Failed to save results for: Ben.")
    assert body["failures"][0]["field_group"] == "marks"
    assert body["sheet"]["rows"][1]["mark"]["marks_obtained"] == "40"


def test_student_sees_own_report(client, results_setup, student_headers, teacher_headers):
    sheet = client.get("/results/sheet", params=_sheet_params(results_setup), headers=teacher_headers).json()
    sheet["rows"][0]["mark"].update(marks_obtained="88", max_marks="100")
    sheet["rows"][0]["cgpa"]["value"] = "9.1"
    client.post("/results/save", headers=teacher_headers, json=sheet)

    response = client.get("/results/me", headers=student_headers)

    assert response.status_code == 200
    report = response.json()
    assert report["student"]["name"] == "Asha"
    assert report["terms"] == [{
        "term_id": results_setup["term"].id,
        "term_name": "T1",
        "cgpa": 9.1,
        "subjects": [{"subject_name": "Math", "marks_obtained": 88.0, "max_marks": 100.0}],
    }]


def test_staff_cannot_use_student_report(client, teacher_headers):
    assert client.get("/results/me", headers=teacher_headers).status_code == 403


def test_roster_failure_returns_503(client, results_setup, teacher_headers, monkeypatch):
    def broken_roster(db, class_name):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(crud, "get_students_in_class", broken_roster)

    response = client.get("/results/sheet", params=_sheet_params(results_setup), headers=teacher_headers)

    assert response.status_code == 503
    assert response.json() == {
        "status_code": 503,
        "detail": "Unable to load students for the selected class.",
        "error_code": "LOAD_ERROR",
    }


def test_sheet_for_unknown_subject_returns_503(client, results_setup, teacher_headers):
    params = dict(_sheet_params(results_setup), subject_id=999)
    response = client.get("/results/sheet", params=params, headers=teacher_headers)
    assert response.status_code == 503
    assert response.json()["detail"] == "The selected term or subject no longer exists."
    assert "rows" not in response.json()
