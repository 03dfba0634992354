# salon_booking/middleware/audit.py
# one JSON line per request: method / path / status; IP / UA; processing time
# does not block the request; does not write to the DB

import json
import logging
import time

from fastapi import Request

logger = logging.getLogger("salon_booking.audit")


async def audit_middleware(request: Request, call_next):
    start_ts = time.time()

    response = await call_next(request)

    duration_ms = int((time.time() - start_ts) * 1000)

    client_host = request.client.host if request.client else ""
    record = {
        "ts": int(start_ts),
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "ip": request.headers.get("X-Real-IP") or client_host,
        "ua": request.headers.get("User-Agent", ""),
        "duration_ms": duration_ms,
    }

    logger.info(json.dumps(record, ensure_ascii=False))

    return response
