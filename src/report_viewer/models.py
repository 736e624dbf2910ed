from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReportSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    app_name: str = Field(alias="appName")
    display_name: str = Field(alias="displayName")
    html_file: Optional[str] = Field(default=None, alias="htmlFile")
    csv_file: Optional[str] = Field(default=None, alias="csvFile")

    def to_payload(self) -> dict[str, str | None]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ViewerSettings(BaseModel):
    data_dir: str
    logs_dir: str
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    addressing_mode: Literal["name", "filename"] = "name"
    display_name_prefix: str = "app"
    ticket_column: str = "TicketID"
    ticket_url_template: str
    refresh_interval_seconds: int = Field(default=300, gt=0)
    descriptions_file: str
    log_level: str = "INFO"

    @field_validator("ticket_url_template")
    @classmethod
    def _template_has_placeholder(cls, value: str) -> str:
        if "{ticket_id}" not in value:
            raise ValueError("ticket_url_template must contain '{ticket_id}'")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level '{value}'")
        return level

    def to_flask_config(self) -> dict[str, object]:
        return {key.upper(): value for key, value in self.model_dump().items()}
