"""
Crash report intake endpoint.

Endpoints:
  POST {report_path}    ACRA client submits one JSON crash report

The response never carries a body or any failure detail: 200 when the report
was logged and the notification sent, 500 for every other outcome. The
reason is written to the operator log instead.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from crash_collector.exceptions import PayloadReadError
from crash_collector.services.ingestion import ReportIngestor, decode_payload

logger = logging.getLogger(__name__)

router = APIRouter()


def get_ingestor(request: Request) -> ReportIngestor:
    """Return the ingestor built at startup by create_app()."""
    return request.app.state.ingestor


@router.post(
    "",
    status_code=200,
    response_class=Response,
    responses={
        200: {"description": "Report logged and notification sent"},
        500: {"description": "Report could not be read, logged, parsed or delivered"},
    },
)
async def receive_report(
    request: Request,
    ingestor: ReportIngestor = Depends(get_ingestor),
) -> Response:
    """
    Accept one crash report.

    The body is read on the event loop; logging, parsing and mail delivery then
    run on a worker thread from the bounded pool and block it until done.
    """
    logger.info("Incoming report...")

    try:
        raw = await request.body()
        payload = decode_payload(raw)
    except ClientDisconnect:
        logger.error("Ingestion failed at receive: client disconnected")
        return Response(status_code=500)
    except PayloadReadError as e:
        logger.error(f"Ingestion failed at receive: {e}")
        return Response(status_code=500)

    try:
        result = await run_in_threadpool(ingestor.ingest, payload)
    except Exception:
        logger.exception("Unexpected error while ingesting report")
        return Response(status_code=500)

    return Response(status_code=200 if result.ok else 500)
