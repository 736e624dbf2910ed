from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

from flask import Flask, Response, jsonify, render_template, request, send_file

from report_viewer.config import resolve_settings
from report_viewer.errors import InvalidReportPathError, ReportIOError, ReportNotFoundError
from report_viewer.logging_setup import configure_logging
from report_viewer.models import ReportSummary, ViewerSettings
from report_viewer.resolver import ReportResolver, load_descriptions

logger = logging.getLogger(__name__)

FILE_CONTENT_TYPES = {
    ".html": "text/html",
    ".csv": "text/csv",
}


def create_app(config_overrides: dict[str, Any] | None = None) -> Flask:
    settings = resolve_settings(config_overrides)
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.update(settings.to_flask_config())
    app.config.update(config_overrides or {})

    def resolver() -> ReportResolver:
        return ReportResolver(
            data_dir=Path(app.config["DATA_DIR"]),
            display_prefix=app.config["DISPLAY_NAME_PREFIX"],
        )

    filename_mode = app.config["ADDRESSING_MODE"] == "filename"

    @app.after_request
    def log_outcome(response: Response) -> Response:
        logger.info("%s %s -> %s", request.method, request.path, response.status_code)
        return response

    @app.get("/")
    def index() -> str:
        return render_template(
            "index.html",
            viewer_config={
                "addressingMode": app.config["ADDRESSING_MODE"],
                "ticketColumn": app.config["TICKET_COLUMN"],
                "ticketUrlTemplate": app.config["TICKET_URL_TEMPLATE"],
                "refreshIntervalMs": int(app.config["REFRESH_INTERVAL_SECONDS"]) * 1000,
                "descriptionsUrl": "/data/desc.json",
            },
        )

    @app.get("/api/reports")
    def list_reports() -> Any:
        try:
            reports = resolver().list_reports()
        except ReportIOError as exc:
            logger.error("GET /api/reports: %s", exc)
            return jsonify({"error": "Failed to fetch reports"}), 500

        payload = []
        for report in reports:
            files: dict[str, str | None] = {}
            if filename_mode:
                files["html_file"] = report.html_path.name
                files["csv_file"] = report.csv_path.name if report.csv_path else None
            summary = ReportSummary(app_name=report.app_name, display_name=report.display_name, **files)
            payload.append(summary.to_payload())
        return jsonify(payload)

    if filename_mode:

        @app.get("/report/<path:filename>")
        def report_file(filename: str) -> Any:
            try:
                path = resolver().resolve_by_filename(filename)
            except InvalidReportPathError:
                logger.info("Rejected report filename: %s", filename)
                return jsonify({"error": "Invalid filename"}), 400
            except ReportNotFoundError:
                logger.info("Report file not found: %s", filename)
                return jsonify({"error": "File not found"}), 404
            except ReportIOError as exc:
                logger.error("GET /report/<filename>: %s", exc)
                return jsonify({"error": "Failed to fetch file"}), 500

            mimetype = FILE_CONTENT_TYPES.get(path.suffix.lower(), "text/plain")
            return send_file(
                path,
                mimetype=mimetype,
                as_attachment=mimetype == "text/csv",
                download_name=path.name,
                max_age=0,
            )

    else:

        @app.get("/api/reports/<app_name>")
        def report_html(app_name: str) -> Any:
            try:
                content = resolver().get_report_html(app_name)
            except ReportNotFoundError:
                logger.info("Report not found: %s", app_name)
                return jsonify({"error": "Report not found"}), 404
            except ReportIOError as exc:
                logger.error("GET /api/reports/<app_name>: %s", exc)
                return jsonify({"error": "Failed to fetch report"}), 500
            return Response(content, mimetype="text/html")

        @app.get("/api/reports/<app_name>/csv")
        def report_csv(app_name: str) -> Any:
            try:
                content = resolver().get_report_csv(app_name)
            except ReportNotFoundError:
                logger.info("CSV file not found for: %s", app_name)
                return jsonify({"error": "CSV file not found"}), 404
            except ReportIOError as exc:
                logger.error("GET /api/reports/<app_name>/csv: %s", exc)
                return jsonify({"error": "Failed to download CSV"}), 500
            return Response(
                content,
                mimetype="text/csv",
                headers={"Content-Disposition": f'attachment; filename="{app_name}_report.csv"'},
            )

    @app.get("/data/desc.json")
    def descriptions() -> Any:
        try:
            return jsonify(load_descriptions(app.config["DESCRIPTIONS_FILE"]))
        except ReportIOError as exc:
            logger.error("GET /data/desc.json: %s", exc)
            return jsonify({"error": "Failed to load descriptions"}), 500

    @app.get("/health")
    def health() -> Any:
        return jsonify({"status": "healthy"})

    return app


def serve(settings: ViewerSettings, host: str | None = None, port: int | None = None) -> None:
    """Run the server until interrupted. A bind failure raises ``OSError``."""
    app = create_app(settings.to_flask_config())
    bind_host = host or settings.host
    bind_port = port or settings.port
    logger.info("Web server starting on port %d", bind_port)
    logger.info("Watching for reports in: %s", settings.data_dir)
    app.run(host=bind_host, port=bind_port, threaded=True)


def main() -> None:
    settings = resolve_settings()
    configure_logging(settings.logs_dir, level=settings.log_level)
    try:
        serve(settings)
    except OSError as exc:
        logger.error("Failed to start server: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
