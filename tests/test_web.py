import json
from pathlib import Path

from report_viewer.web import create_app


def _client(data_dir: Path, **overrides):
    config = {"TESTING": True, "DATA_DIR": str(data_dir)}
    config.update(overrides)
    return create_app(config).test_client()


def test_index_renders(data_dir: Path) -> None:
    response = _client(data_dir).get("/")
    assert response.status_code == 200
    assert b"Custom Reporting" in response.data
    assert b'"refreshIntervalMs": 300000' in response.data


def test_health(data_dir: Path) -> None:
    response = _client(data_dir).get("/health")
    assert response.status_code == 200
    assert response.json == {"status": "healthy"}


def test_list_reports(data_dir: Path) -> None:
    response = _client(data_dir).get("/api/reports")
    assert response.status_code == 200
    assert response.json == [
        {"appName": "Summary", "displayName": "Summary"},
        {"appName": "appOpenTickets", "displayName": "OpenTickets"},
    ]


def test_list_reports_missing_data_dir_is_empty(tmp_path: Path) -> None:
    response = _client(tmp_path / "missing").get("/api/reports")
    assert response.status_code == 200
    assert response.json == []


def test_report_html(data_dir: Path) -> None:
    response = _client(data_dir).get("/api/reports/appOpenTickets")
    assert response.status_code == 200
    assert response.mimetype == "text/html"
    assert b"<th>TicketID</th>" in response.data


def test_report_html_not_found(data_dir: Path) -> None:
    response = _client(data_dir).get("/api/reports/appMissing")
    assert response.status_code == 404
    assert response.json == {"error": "Report not found"}


def test_report_csv_download(data_dir: Path) -> None:
    response = _client(data_dir).get("/api/reports/appOpenTickets/csv")
    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert response.headers["Content-Disposition"] == 'attachment; filename="appOpenTickets_report.csv"'
    assert response.data.startswith(b"TicketID,Board")


def test_report_csv_not_found(data_dir: Path) -> None:
    client = _client(data_dir)
    assert client.get("/api/reports/Summary/csv").status_code == 404
    response = client.get("/api/reports/appMissing/csv")
    assert response.status_code == 404
    assert response.json == {"error": "CSV file not found"}


def test_unreadable_report_is_server_error(data_dir: Path) -> None:
    (data_dir / "appOpenTickets" / "open_tickets.html").write_bytes(b"\xff\xfe\xfa broken")
    response = _client(data_dir).get("/api/reports/appOpenTickets")
    assert response.status_code == 500
    assert response.json == {"error": "Failed to fetch report"}


def test_name_mode_has_no_filename_route(data_dir: Path) -> None:
    assert _client(data_dir).get("/report/open_tickets.html").status_code == 404


def test_filename_mode_lists_files(data_dir: Path) -> None:
    response = _client(data_dir, ADDRESSING_MODE="filename").get("/api/reports")
    assert response.json[1] == {
        "appName": "appOpenTickets",
        "displayName": "OpenTickets",
        "htmlFile": "open_tickets.html",
        "csvFile": "open_tickets.csv",
    }
    assert "csvFile" not in response.json[0]


def test_filename_mode_serves_by_extension(data_dir: Path) -> None:
    client = _client(data_dir, ADDRESSING_MODE="filename")

    html = client.get("/report/open_tickets.html")
    assert html.status_code == 200
    assert html.mimetype == "text/html"

    csv = client.get("/report/open_tickets.csv")
    assert csv.status_code == 200
    assert csv.mimetype == "text/csv"
    assert csv.headers["Content-Disposition"].startswith("attachment")
    assert "open_tickets.csv" in csv.headers["Content-Disposition"]

    text = client.get("/report/notes.txt")
    assert text.status_code == 200
    assert text.mimetype == "text/plain"
    assert text.data == b"not a report"


def test_filename_mode_rejects_traversal(data_dir: Path) -> None:
    response = _client(data_dir, ADDRESSING_MODE="filename").get("/report/../../etc/passwd")
    assert response.status_code == 400
    assert response.json == {"error": "Invalid filename"}


def test_filename_mode_not_found(data_dir: Path) -> None:
    client = _client(data_dir, ADDRESSING_MODE="filename")
    assert client.get("/report/missing.html").status_code == 404
    assert client.get("/api/reports/appOpenTickets").status_code == 404


def test_descriptions(data_dir: Path) -> None:
    client = _client(data_dir)
    assert client.get("/data/desc.json").json == {}

    (data_dir / "desc.json").write_text(json.dumps({"appOpenTickets": "Open tickets by board"}), encoding="utf-8")
    assert client.get("/data/desc.json").json == {"appOpenTickets": "Open tickets by board"}


def test_static_assets(data_dir: Path) -> None:
    client = _client(data_dir)
    script = client.get("/static/js/app.js")
    assert script.status_code == 200
    assert b"class ReportingApp" in script.data
    script.close()


def test_requests_are_logged(data_dir: Path, caplog) -> None:
    caplog.set_level("INFO", logger="report_viewer")
    _client(data_dir).get("/api/reports/appMissing")
    assert "Report not found: appMissing" in caplog.text
    assert "GET /api/reports/appMissing -> 404" in caplog.text
