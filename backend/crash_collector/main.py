"""
Crash Collector API
FastAPI application that receives ACRA crash reports, appends them to a crash
log file and e-mails each one to the developer.
"""

import logging
import sys
from typing import Optional

import anyio.to_thread
import uvicorn
from fastapi import FastAPI

from crash_collector.config import Settings, load_settings
from crash_collector.exceptions import ConfigError
from crash_collector.routers import reports
from crash_collector.services.crash_log import CrashLog
from crash_collector.services.ingestion import ReportIngestor
from crash_collector.services.mailer import Mailer

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

__version__ = "0.1.0"


def create_app(
    settings: Settings,
    crash_log: Optional[CrashLog] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """
    Build the collector application around an already-loaded Settings.

    crash_log and mailer default to real instances built from settings; tests
    pass their own.
    """
    app = FastAPI(
        title="Crash Collector",
        description="Receives ACRA crash reports, logs them and notifies by e-mail",
        version=__version__,
    )

    app.state.settings = settings
    app.state.ingestor = ReportIngestor(
        settings,
        crash_log if crash_log is not None else CrashLog(settings.crash_log_path),
        mailer if mailer is not None else Mailer(settings),
    )

    app.include_router(reports.router, prefix=settings.report_path, tags=["reports"])

    @app.on_event("startup")
    async def size_worker_pool() -> None:
        """
        Fix the number of threads that may run ingestion concurrently.

        Blocking work is dispatched with run_in_threadpool, which draws from
        AnyIO's default thread limiter. Requests beyond this many wait for a
        free worker.
        """
        limiter = anyio.to_thread.current_default_thread_limiter()
        limiter.total_tokens = settings.workers
        logger.info(
            "Starting server on %s:%s with %d workers, crash log at %s",
            settings.host,
            settings.port,
            settings.workers,
            settings.crash_log_path,
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def main() -> int:
    """Console entry point: load config.json and serve until interrupted."""
    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error(f"Could not start: {e}")
        return 1

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
