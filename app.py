from typing import Any, Dict, Optional

import config
from config import logger

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from logic.validation import EMAIL_INVALID
from services.waitlist_service import (
    ConflictError,
    InternalError,
    ValidationError,
    WaitlistService,
    get_waitlist_service,
)


app = FastAPI(
    title=f"{config.PRODUCT_NAME} Waitlist API",
    description="Landing page waitlist: email capture + signup count.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=config.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


class WaitlistRequest(BaseModel):
    email: Optional[str] = None


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


@app.exception_handler(RequestValidationError)
def _bad_request_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"[waitlist] rejected malformed body on {request.url.path}: {exc.errors()}")
    return JSONResponse({"success": False, "error": EMAIL_INVALID}, status_code=400)


@app.on_event("startup")
def _startup() -> None:
    # build the store up front so a bad backend setting fails at boot
    get_waitlist_service()


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/waitlist")
def waitlist_count(service: WaitlistService = Depends(get_waitlist_service)) -> Any:
    try:
        return service.get_count()
    except InternalError:
        return JSONResponse({"error": "Internal server error"}, status_code=500)


@app.post("/api/waitlist")
def join_waitlist(
    request: Request,
    body: Optional[WaitlistRequest] = None,
    service: WaitlistService = Depends(get_waitlist_service),
) -> Any:
    email = body.email if body else None

    try:
        result = service.submit(
            email,
            source_ip=_client_ip(request),
            user_agent=request.headers.get("user-agent") or "unknown",
        )
    except ValidationError as e:
        return JSONResponse({"success": False, "error": e.message}, status_code=400)
    except ConflictError as e:
        return JSONResponse({"success": False, "error": e.message}, status_code=409)
    except InternalError as e:
        return JSONResponse({"success": False, "error": e.message}, status_code=500)

    return {"success": True, "message": result.message, "total": result.total}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
