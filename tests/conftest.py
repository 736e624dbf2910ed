from pathlib import Path

import pytest

REPORT_HTML = """
<h2>Open Tickets</h2>
<table>
  <thead>
    <tr><th>TicketID</th><th>Board</th><th>Age</th><th>Summary</th></tr>
  </thead>
  <tbody>
    <tr><td>1042</td><td>Board B</td><td>10</td><td>Printer jam</td></tr>
    <tr><td>1001</td><td>Board A</td><td>2</td><td>Item 10</td></tr>
    <tr><td>1077</td><td>Board A</td><td>1</td><td>Item 9</td></tr>
  </tbody>
</table>
"""

REPORT_CSV = "TicketID,Board,Age,Summary\n1042,Board B,10,Printer jam\n1001,Board A,2,Item 10\n1077,Board A,1,Item 9\n"


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPORT_VIEWER_CONFIG", str(tmp_path / "no-such-viewer.yaml"))
    for key in ("DATA_DIR", "LOGS_DIR", "HOST", "PORT", "ADDRESSING_MODE", "TICKET_URL_TEMPLATE", "DESCRIPTIONS_FILE", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    root = tmp_path / "data"
    tickets = root / "appOpenTickets"
    tickets.mkdir(parents=True)
    (tickets / "open_tickets.html").write_text(REPORT_HTML, encoding="utf-8")
    (tickets / "open_tickets.csv").write_text(REPORT_CSV, encoding="utf-8")

    summary = root / "Summary"
    summary.mkdir()
    (summary / "summary.html").write_text("<p>No table here</p>", encoding="utf-8")

    (root / "appEmpty").mkdir()
    (root / "appEmpty" / "notes.txt").write_text("not a report", encoding="utf-8")
    return root
