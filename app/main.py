import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1.bookings import router as bookings_router
from app.application.exceptions import SchedulingContractError
from app.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("booking_id", "status", "date", "time", "operation", "attempt", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title=f"{settings.BUSINESS_NAME} Bookings", version="1.0.0")

app.include_router(bookings_router, prefix="/api/v1", tags=["bookings"])


@app.exception_handler(SchedulingContractError)
async def scheduling_contract_error(request: Request, exc: SchedulingContractError) -> JSONResponse:
    logging.getLogger(__name__).exception("Scheduling contract violated", extra={"reason": str(exc)})
    return JSONResponse(status_code=500, content={"detail": "Something went wrong. Please try again later."})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
