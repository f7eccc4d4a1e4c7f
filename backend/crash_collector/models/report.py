"""
Crash report model and parser.

ACRA clients POST a JSON document with upper-case keys. Only the fields the
collector uses are modelled; ACRA sends many more and they are ignored.
"""

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from crash_collector.exceptions import ReportParseError

MAX_VERSION_CODE = 2**64 - 1


class Report(BaseModel):
    """A single crash submission decoded from a client payload."""

    model_config = {"frozen": True, "extra": "ignore", "populate_by_name": True}

    android_version: str = Field(alias="ANDROID_VERSION")
    # Strict: "12" or 12.0 are rejected rather than coerced. Unsigned 64-bit range.
    app_version_code: int = Field(
        alias="APP_VERSION_CODE", ge=0, le=MAX_VERSION_CODE, strict=True
    )
    app_version_name: str = Field(alias="APP_VERSION_NAME")
    custom_data: dict[str, Any] = Field(alias="CUSTOM_DATA")
    package_name: str = Field(alias="PACKAGE_NAME")
    report_id: str = Field(alias="REPORT_ID")
    stack_trace: str = Field(alias="STACK_TRACE")


def parse_report(payload: str) -> Report:
    """
    Decode a raw request body into a Report.

    Raises:
        ReportParseError: if the payload is not JSON or any required field is
            missing or has the wrong type.
    """
    try:
        return Report.model_validate_json(payload)
    except ValidationError as e:
        raise ReportParseError(f"Could not parse report: {e}") from e
