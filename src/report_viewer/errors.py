from __future__ import annotations


class ReportViewerError(Exception):
    pass


class ReportNotFoundError(ReportViewerError):
    """Requested report, report file or directory does not exist."""


class InvalidReportPathError(ReportViewerError, ValueError):
    """Requested filename would escape the data root."""


class ReportIOError(ReportViewerError):
    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation}: {cause}")
        self.operation = operation
        self.cause = cause
