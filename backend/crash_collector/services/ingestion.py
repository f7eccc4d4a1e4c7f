"""
Crash report ingestion pipeline.

For each inbound request the ingestor runs, strictly in order:

  receive  → decode the raw body as UTF-8 text          (decode_payload)
  persist  → append the raw text to the crash log
  parse    → decode the text into a Report
  compose  → render the notification email
  deliver  → send it over SMTP

The first failing stage ends the request. Nothing is retried and nothing
already done is rolled back: a report that was logged but failed to parse or
deliver stays in the crash log and no email is sent for it. That case is
logged as a warning so the operator can spot reports that never produced a
notification.

ingest() turns every pipeline failure into an IngestResult, which the router
maps to a bare 200 or 500. Anything else is a bug and propagates.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from crash_collector.config import Settings
from crash_collector.exceptions import CollectorError, PayloadReadError
from crash_collector.models.report import parse_report
from crash_collector.services.composer import compose_notification
from crash_collector.services.crash_log import CrashLog
from crash_collector.services.mailer import Mailer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    """Outcome of one pass through the pipeline."""

    ok: bool
    failed_stage: Optional[str] = None
    report_id: Optional[str] = None


def decode_payload(raw: bytes) -> str:
    """
    Receive step: interpret the request body as UTF-8 text.

    Raises:
        PayloadReadError: if the body is not valid UTF-8.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PayloadReadError(f"Could not read body to string: {e}") from e


class ReportIngestor:
    """
    Runs the persist → parse → compose → deliver pipeline for one payload.

    Collaborators are injected so a single instance, built at startup from the
    loaded Settings, is shared by every worker.
    """

    def __init__(self, settings: Settings, crash_log: CrashLog, mailer: Mailer):
        self.settings = settings
        self.crash_log = crash_log
        self.mailer = mailer

    def ingest(self, payload: str) -> IngestResult:
        persisted = False
        report_id = None
        try:
            self.crash_log.append(payload)
            persisted = True
            logger.info("  -> Saved to crash log file")

            report = parse_report(payload)
            report_id = report.report_id
            logger.info("  -> Parsed report")
            logger.info(f"  -> Report ID is {report_id}")

            notification = compose_notification(report, self.settings)
            self.mailer.send(notification)
            logger.info("  -> Sent report e-mail")
        except CollectorError as e:
            logger.error(f"Ingestion failed at {e.stage}: {e}")
            if persisted:
                logger.warning(
                    "Report is stored in the crash log but no notification was sent"
                    + (f" (report {report_id})" if report_id else "")
                )
            return IngestResult(ok=False, failed_stage=e.stage, report_id=report_id)

        return IngestResult(ok=True, report_id=report_id)
