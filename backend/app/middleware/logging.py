"""
backend/app/middleware/logging.py

Purpose:
    One JSON access line per request plus process-wide logging setup.
    Raw slip text never reaches the access log: the match query is hashed
    the same way as the client address.
"""

import hashlib
import json
import logging
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = logging.getLogger("slipscan.access")

REQUEST_ID_HEADER = "X-Request-ID"

# Loggers that go to DEBUG when ENRICH_DEBUG is set
RESOLUTION_LOGGERS = (
    "slipscan.resolution",
    "slipscan.sofascore",
    "slipscan.web_verifier",
    "slipscan.enrichment",
)


def short_hash(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return hashlib.sha256(value.encode()).hexdigest()[:12]


def _request_id(request: Request) -> str:
    inbound = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if inbound and len(inbound) <= 64:
        return inbound
    return uuid.uuid4().hex[:8]


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _request_id(request)
        request.state.request_id = request_id
        start = time.perf_counter()

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "sport": request.query_params.get("sport"),
            "match_hash": short_hash(request.query_params.get("match")),
            "client_ip_hash": short_hash(request.client.host) if request.client else None,
        }

        try:
            response: Response = await call_next(request)
        except Exception:
            log_data["status"] = 500
            log_data["duration_ms"] = round((time.perf_counter() - start) * 1000, 2)
            logger.exception(json.dumps(log_data))
            raise

        log_data["status"] = response.status_code
        log_data["duration_ms"] = round((time.perf_counter() - start) * 1000, 2)
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(level, json.dumps(log_data))

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def setup_logging(debug: Optional[bool] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    debug = settings.ENRICH_DEBUG if debug is None else debug
    level = logging.DEBUG if debug else logging.NOTSET
    for name in RESOLUTION_LOGGERS:
        logging.getLogger(name).setLevel(level)
