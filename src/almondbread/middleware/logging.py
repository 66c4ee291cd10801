"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One log line per request on the "almondbread.access" logger, so access
logs can be routed or silenced separately from application logs:

    logging.getLogger("almondbread.access").setLevel(logging.WARNING)

Text format (Apache-like, plus media type, render time and request id):

    127.0.0.1 - - [19/Oct/2026:12:00:00 +0000] "GET /tile_x0_y0_z1.bmp" 200 196662 image/bmp 412.80ms a1b2c3d4

JSON format:

    {"request_id": "a1b2c3d4", "client_ip": "127.0.0.1", "method": "GET",
     "target": "/tile_x0_y0_z1.bmp", "status": 200, "size": 196662,
     "media_type": "image/bmp", "elapsed_ms": 412.8, ...}

Every response also gets an X-Request-ID header carrying the same id,
so a client can quote it when reporting a bad tile.

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("almondbread.access")

TIMESTAMP_FORMAT = "%d/%b/%Y:%H:%M:%S %z"


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class AccessRecord:
    """What the access log keeps about one answered request."""

    request_id: str
    client_ip: str
    method: str
    target: str
    status: int
    size: int
    media_type: str
    elapsed_ms: float
    timestamp: str
    user_agent: str = "-"

    @classmethod
    def capture(
        cls,
        request: HTTPRequest,
        response: HTTPResponse,
        request_id: str,
        elapsed_ms: float,
    ) -> "AccessRecord":
        target = request.path
        if request.query_string:
            target = f"{target}?{request.query_string}"

        return cls(
            request_id=request_id,
            client_ip=request.client_address[0] or "-",
            method=request.method,
            target=target,
            status=int(response.status),
            size=len(response.body),
            media_type=response.content_type.split(";")[0].strip() or "-",
            elapsed_ms=elapsed_ms,
            timestamp=time.strftime(TIMESTAMP_FORMAT),
            user_agent=request.user_agent or "-",
        )

    def to_json(self) -> str:
        fields = asdict(self)
        fields["elapsed_ms"] = round(self.elapsed_ms, 2)
        return json.dumps(fields)

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] "{self.method} {self.target}" '
            f"{self.status} {self.size} {self.media_type} "
            f"{self.elapsed_ms:.2f}ms {self.request_id}"
        )


class LoggingMiddleware(Middleware):
    """
    Times each request, rendering included, and logs it once answered.

    Usage:
        pipeline.add(LoggingMiddleware(log_format="json"))
    """

    def __init__(self, log_format: str = "text", request_id_header: bool = True,
                 level: int = logging.INFO):
        """
        Args:
            log_format: "text" or "json".
            request_id_header: Set X-Request-ID on every response.
            level: Level for 1xx-3xx answers; 4xx and 5xx use WARNING.
        """
        self.log_format = log_format
        self.request_id_header = request_id_header
        self.level = level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = new_request_id()
        started = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            logger.error(
                f"{request_id} {request.method} {request.path} raised "
                f"{type(e).__name__}: {e} after {self._elapsed_ms(started):.2f}ms"
            )
            raise

        record = AccessRecord.capture(request, response, request_id, self._elapsed_ms(started))
        line = record.to_json() if self.log_format == "json" else record.to_text()
        logger.log(logging.WARNING if response.status.is_error else self.level, line)

        if self.request_id_header:
            response.set_header("X-Request-ID", request_id)

        return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# - Timing of the whole handler, tile rendering included
# - X-Request-ID for matching a client report to a log line
# - Text for people, JSON for log aggregators
# =============================================================================
