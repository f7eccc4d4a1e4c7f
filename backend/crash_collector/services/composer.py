"""
Notification composer.

Turns a parsed Report into the subject and plain-text body of the operator
email. Pure function of the report and the configured addresses; no I/O.

Body layout (CRLF line endings):

    A new crash happened:

    - Report ID: <REPORT_ID>
    - Version: <APP_VERSION_NAME> (<APP_VERSION_CODE>)
    - Android version: <ANDROID_VERSION>

    Custom data:            <- only when CUSTOM_DATA is non-empty

      <key> = <json value>

    Stack trace:

    <STACK_TRACE>
"""

import json
from typing import Any

from crash_collector.config import Settings
from crash_collector.models.notification import NotificationMessage
from crash_collector.models.report import Report

CRLF = "\r\n"


def format_subject(report: Report) -> str:
    return f"New crash of {report.package_name} ({report.app_version_name})"


def _format_custom_value(value: Any) -> str:
    """Render a custom-data value as compact JSON (strings keep their quotes)."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def format_body(report: Report) -> str:
    lines = [
        f"A new crash happened:{CRLF}{CRLF}",
        f"- Report ID: {report.report_id}{CRLF}",
        f"- Version: {report.app_version_name} ({report.app_version_code}){CRLF}",
        f"- Android version: {report.android_version}{CRLF}",
    ]
    if report.custom_data:
        lines.append(f"{CRLF}Custom data:{CRLF}{CRLF}")
        for key, value in report.custom_data.items():
            lines.append(f"  {key} = {_format_custom_value(value)}{CRLF}")
    # Stack trace goes out untouched, however large
    lines.append(f"{CRLF}Stack trace:{CRLF}{CRLF}{report.stack_trace}")
    return "".join(lines)


def compose_notification(report: Report, settings: Settings) -> NotificationMessage:
    """Build the operator notification for one crash report."""
    return NotificationMessage(
        sender=settings.email_from,
        recipient=settings.email_to,
        subject=format_subject(report),
        body=format_body(report),
    )
