import mysql.connector
import pytest

from reportcards import feeds
from reportcards.report_cards import routes as report_card_routes
from reportcards.reporting.errors import FeedError


@pytest.fixture
def results_feed(monkeypatch, make_row):
    rows = [
        make_row(student_id=1, last_name="Nakato", score=80),
        make_row(student_id=2, last_name="Apio", score=90),
        make_row(student_id=3, last_name="Kato", class_name="P6", score=55),
    ]
    monkeypatch.setattr(feeds, "fetch_results_feed", lambda params=None: ([], rows))
    return rows


@pytest.fixture
def saved(monkeypatch):
    calls = []
    monkeypatch.setattr(feeds, "save_teacher_initials", lambda *args: calls.append(args) or True)
    monkeypatch.setattr(feeds, "save_next_term_begins", lambda *args: calls.append(args) or False)
    return calls


def test_reports_page_renders(client, results_feed):
    response = client.get("/reports")
    assert response.status_code == 200
    assert b"TEST PRIMARY SCHOOL" in response.data
    assert b"Nakato" in response.data


def test_reports_data_filters_by_class(client, results_feed):
    payload = client.get("/reports/data?class_id=P5").get_json()
    [p5] = payload["classes"]
    assert p5["class_name"] == "P5"
    assert [s["last_name"] for s in p5["students"]] == ["Apio", "Nakato"]
    assert payload["choices"]["class_names"] == ["P5", "P6"]
    assert payload["promotions"] is None


def test_conversion_flag_from_query(client, monkeypatch, make_row):
    rows = [make_row(score=80, result_type_name="Mid Term"),
            make_row(score=90, result_type_name="End of Term")]
    monkeypatch.setattr(feeds, "fetch_results_feed", lambda params=None: ([], rows))
    payload = client.get("/reports/data", query_string={"result_type": "End of Term", "convert": "1"}).get_json()
    subject = payload["classes"][0]["students"][0]["subjects"][0]
    assert payload["enable_conversion"] is True
    assert (subject["mid_term_marks"], subject["end_term_marks"], subject["total_marks"]) == (32, 54, 86)


def test_feed_outage_gives_empty_report(client, monkeypatch):
    def unavailable(params=None):
        raise FeedError("backend down")

    monkeypatch.setattr(feeds, "fetch_results_feed", unavailable)
    payload = client.get("/reports/data").get_json()
    assert payload["classes"] == []
    assert client.get("/reports").status_code == 200


def test_final_term_asks_for_promotions(client, results_feed, monkeypatch):
    asked = []
    monkeypatch.setattr(feeds, "fetch_promotions",
                        lambda term_id, class_id: asked.append((term_id, class_id)) or {"students": []})
    payload = client.get("/reports/data", query_string={"term": "Term 3", "class_id": "P5"}).get_json()
    assert asked == [("3", "P5")]
    assert payload["promotions"] == {"students": []}


def test_teacher_initials_are_kept_in_session(client, results_feed, saved):
    response = client.post("/reports/teacher-initials",
                           json={"class_name": "P5", "subject_name": "Mathematics", "initials": "ZZ"})
    assert response.get_json() == {"initials": "ZZ", "saved": True}
    assert saved == [("P5", "Mathematics", "ZZ")]

    payload = client.get("/reports/data?class_id=P5").get_json()
    assert payload["classes"][0]["students"][0]["subjects"][0]["initials"] == "ZZ"


def test_teacher_initials_need_class_and_subject(client, saved):
    response = client.post("/reports/teacher-initials", json={"initials": "ZZ"})
    assert response.status_code == 400
    assert saved == []


def test_next_term_date_kept_even_when_backend_fails(client, results_feed, saved):
    response = client.post("/reports/next-term", data={"nextTermBegins": "3rd Feb 2026"})
    assert response.get_json() == {"nextTermBegins": "3rd Feb 2026", "saved": False}
    payload = client.get("/reports/data").get_json()
    assert payload["classes"][0]["students"][0]["next_term_begins"] == "3rd Feb 2026"


def test_term_label_override(client, results_feed):
    client.post("/reports/term-label", json={"term_label": "Term II 2026"})
    payload = client.get("/reports/data").get_json()
    assert payload["classes"][0]["students"][0]["term_label"] == "Term II 2026"


def test_promote_reports_backend_failure(client, monkeypatch):
    def rejected(student_ids, new_class_id):
        raise FeedError("Promotion rejected: locked")

    monkeypatch.setattr(feeds, "promote_students", rejected)
    response = client.post("/reports/promote", json={"studentIds": [1], "newClassId": 8})
    assert response.status_code == 502
    assert response.get_json()["success"] is False


def test_promote_success(client, monkeypatch):
    monkeypatch.setattr(feeds, "promote_students", lambda student_ids, new_class_id: {"success": True})
    response = client.post("/reports/promote", json={"studentIds": [1, 2], "newClassId": 8})
    assert response.get_json() == {"success": True, "message": "Successfully promoted 2 student(s)!"}


def test_excel_and_pdf_downloads(client, results_feed):
    excel = client.get("/reports/export/excel")
    assert excel.status_code == 200
    assert excel.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert "attachment" in excel.headers["Content-Disposition"]

    pdf = client.get("/reports/export/pdf?class_id=P6")
    assert pdf.status_code == 200
    assert pdf.data.startswith(b"%PDF")


def test_failed_export_redirects_back(client, results_feed, monkeypatch):
    from reportcards.reporting import export
    from reportcards.reporting.errors import ExportError

    def broken(*args, **kwargs):
        raise ExportError("boom")

    monkeypatch.setattr(export, "academic_pdf", broken)
    response = client.get("/reports/export/pdf?class_id=P5")
    assert response.status_code == 302
    assert "/reports?class_id=P5" in response.headers["Location"]


def test_tahfiz_data_and_exports(client, monkeypatch):
    seen = []

    def fake_feed(params=None):
        seen.append(params)
        return [
            {"student_id": 1, "first_name": "Yusuf", "last_name": "Kato", "class_name": "Tahfiz A",
             "avg_retention_score": 90, "avg_marks": 90},
            {"student_id": 2, "first_name": "Aisha", "last_name": "Nalubega", "class_name": "Tahfiz A",
             "avg_retention_score": 50, "avg_marks": 40},
        ]

    monkeypatch.setattr(feeds, "fetch_tahfiz_feed", fake_feed)
    payload = client.get("/tahfiz/reports/data", query_string={"term": "Term 2"}).get_json()
    assert seen[0]["term_id"] == "2"
    [tahfiz_class] = payload["classes"]
    assert [s["student"]["first_name"] for s in tahfiz_class["students"]] == ["Yusuf", "Aisha"]

    assert client.get("/tahfiz/reports").status_code == 200
    assert client.get("/tahfiz/reports/export/excel").status_code == 200
    assert client.get("/tahfiz/reports/export/pdf").data.startswith(b"%PDF")


def test_report_card_lookup(client, monkeypatch):
    captured = {}

    def fake_fetch_one(query, params):
        captured["params"] = params
        return {"report_card_id": 4, "first_name": "Amina", "photo_url": None}

    monkeypatch.setattr(report_card_routes, "fetch_one", fake_fetch_one)
    response = client.get("/api/report-cards/4", headers={"X-School-Id": "77"})
    assert response.status_code == 200
    assert response.get_json()["photo_url"] == "/logo.png"
    assert captured["params"] == (4, "77")


def test_report_card_not_found(client, monkeypatch):
    monkeypatch.setattr(report_card_routes, "fetch_one", lambda query, params: None)
    response = client.get("/api/report-cards/9")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Report card not found"}


def test_report_card_database_error(client, monkeypatch):
    def failing(query, params):
        raise mysql.connector.Error("connection refused")

    monkeypatch.setattr(report_card_routes, "fetch_one", failing)
    response = client.get("/api/report-cards/9")
    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to fetch report card"}


def test_qr_code_png(client):
    response = client.get("/api/barcode?id=ADM001")
    assert response.status_code == 200
    assert response.mimetype == "image/png"
    assert response.data.startswith(b"\x89PNG")
    assert client.get("/api/barcode").status_code == 400
