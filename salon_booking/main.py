# salon_booking/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import settings
from .errors import ErrorCode, pydantic_details
from .middleware.audit import audit_middleware
from .redis_client import redis_client
from .routers import appointments, slots, waitlist

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Salon Booking API")

app.middleware("http")(audit_middleware)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation error",
            "code": ErrorCode.VALIDATION_ERROR.value,
            "details": pydantic_details(exc),
        },
    )


app.include_router(slots.router)
app.include_router(appointments.router)
app.include_router(waitlist.router)


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
