from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from report_viewer.errors import InvalidReportPathError, ReportIOError, ReportNotFoundError

logger = logging.getLogger(__name__)

HTML_SUFFIX = ".html"
CSV_SUFFIX = ".csv"


@dataclass(slots=True)
class Report:
    app_name: str
    display_name: str
    html_path: Path
    csv_path: Path | None


def display_name_for(app_name: str, prefix: str = "app") -> str:
    # "appTimeSinceLastTimeEntry" -> "TimeSinceLastTimeEntry"
    if prefix and app_name.startswith(prefix) and len(app_name) > len(prefix):
        return app_name[len(prefix):]
    return app_name


class ReportResolver:
    """Maps report names and filenames to files under the data root.

    Every call scans the filesystem again; nothing is cached between calls.
    """

    def __init__(self, data_dir: str | Path, display_prefix: str = "app") -> None:
        self._data_dir = Path(data_dir)
        self._display_prefix = display_prefix

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def list_reports(self) -> list[Report]:
        if not self._data_dir.is_dir():
            logger.info("Data directory not found: %s", self._data_dir)
            return []

        reports: list[Report] = []
        try:
            for directory in self._report_directories():
                files = sorted(
                    (entry for entry in directory.iterdir() if entry.is_file()),
                    key=lambda entry: entry.name,
                )
                html_path = next((f for f in files if f.name.endswith(HTML_SUFFIX)), None)
                if html_path is None:
                    continue
                csv_path = next((f for f in files if f.name.endswith(CSV_SUFFIX)), None)
                reports.append(
                    Report(
                        app_name=directory.name,
                        display_name=display_name_for(directory.name, self._display_prefix),
                        html_path=html_path,
                        csv_path=csv_path,
                    )
                )
        except OSError as exc:
            raise ReportIOError("list_reports", exc) from exc

        logger.info("Discovered %d available reports", len(reports))
        return reports

    def find_report(self, app_name: str) -> Report:
        for report in self.list_reports():
            if report.app_name == app_name:
                return report
        raise ReportNotFoundError(f"Report not found: {app_name}")

    def get_report_html(self, app_name: str) -> str:
        report = self.find_report(app_name)
        return _read_text(report.html_path, "get_report_html")

    def get_report_csv(self, app_name: str) -> str:
        report = self.find_report(app_name)
        if report.csv_path is None:
            raise ReportNotFoundError(f"CSV file not found for: {app_name}")
        return _read_text(report.csv_path, "get_report_csv")

    def resolve_by_filename(self, filename: str) -> Path:
        if ".." in filename:
            raise InvalidReportPathError(f"Invalid filename: {filename}")
        if not filename or Path(filename).name != filename or "\\" in filename:
            raise InvalidReportPathError(f"Invalid filename: {filename}")
        if not self._data_dir.is_dir():
            logger.info("Data directory not found: %s", self._data_dir)
            raise ReportNotFoundError(f"File not found: {filename}")

        try:
            for directory in self._report_directories():
                candidate = directory / filename
                if candidate.is_file():
                    return candidate
        except OSError as exc:
            raise ReportIOError("resolve_by_filename", exc) from exc
        raise ReportNotFoundError(f"File not found: {filename}")

    def _report_directories(self) -> list[Path]:
        return sorted(
            (entry for entry in self._data_dir.iterdir() if entry.is_dir()),
            key=lambda entry: entry.name,
        )


def load_descriptions(path: str | Path) -> dict[str, str]:
    descriptions_path = Path(path)
    if not descriptions_path.is_file():
        return {}
    try:
        payload = json.loads(descriptions_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ReportIOError("load_descriptions", exc) from exc
    if not isinstance(payload, dict):
        raise ReportIOError("load_descriptions", ValueError("descriptions must be a JSON object"))
    return {str(key): str(value) for key, value in payload.items()}


def _read_text(path: Path, operation: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        # Removed between the scan and the read.
        raise ReportNotFoundError(f"File not found: {path.name}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ReportIOError(operation, exc) from exc
