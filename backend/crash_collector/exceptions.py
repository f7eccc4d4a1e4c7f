"""
Error taxonomy for the crash collector.

Every failure inside the ingestion pipeline is raised as a CollectorError
subclass so the ingestor can catch them in one place, log the cause for the
operator, and answer the client with a bare 500.

  PayloadReadError    request body could not be read as text
  LogWriteError       append to the crash log failed
  ReportParseError    body is not a valid crash report
  MailComposeError    notification could not be turned into an email
  MailDeliveryError   SMTP connection, TLS, login or send failed

ConfigError is raised only at startup and is never caught by the pipeline.
"""


class CollectorError(Exception):
    """Base class for failures of one ingestion pipeline stage."""

    stage = "ingest"


class PayloadReadError(CollectorError):
    stage = "receive"


class LogWriteError(CollectorError):
    stage = "persist"


class ReportParseError(CollectorError):
    stage = "parse"


class MailComposeError(CollectorError):
    stage = "compose"


class MailDeliveryError(CollectorError):
    stage = "deliver"


class ConfigError(Exception):
    """Configuration file is missing or malformed."""
