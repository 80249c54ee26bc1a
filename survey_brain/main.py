"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from survey_brain.api import router as api_router
from survey_brain.core.errors import ErrorKind, ServerError, SurveyBrainError
from survey_brain.core.logging import get_logger

logger = get_logger(__name__)

# Validation error types that mean the caller sent no usable input at all
_BAD_REQUEST_TYPES = {"json_invalid", "missing", "model_type", "model_attributes_type", "dict_type"}

app = FastAPI(
    title="Survey Brain",
    description="Heating survey depot notes and system recommendation service",
    version="0.1.0",
)


def _error_response(kind: ErrorKind, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"error": kind.value, "message": message}, status_code=status_code)


def classify_validation_error(exc: RequestValidationError) -> tuple[ErrorKind, str]:
    """Map FastAPI request validation failures onto the error taxonomy."""
    errors = exc.errors()
    for error in errors:
        loc = tuple(error.get("loc", ()))
        if error.get("type") in _BAD_REQUEST_TYPES and len(loc) <= 2:
            field = loc[-1] if len(loc) == 2 else "body"
            if error.get("type") == "json_invalid":
                return ErrorKind.BAD_REQUEST, "Request body is not valid JSON"
            if error.get("type") == "missing":
                return ErrorKind.BAD_REQUEST, f"{field} required"
            return ErrorKind.BAD_REQUEST, "Request body must be a JSON object"
        if loc[:2] == ("body", "transcript"):
            return ErrorKind.BAD_REQUEST, "transcript required"

    details = "; ".join(
        f"{'.'.join(str(p) for p in e.get('loc', ())[1:]) or 'body'}: {e.get('msg')}" for e in errors
    )
    return ErrorKind.VALIDATION_ERROR, details or "Invalid request"


@app.exception_handler(SurveyBrainError)
async def survey_brain_error_handler(request: Request, exc: SurveyBrainError) -> JSONResponse:
    logger.warning(
        f"{exc.kind.value} on {request.url.path}: {exc.message}",
        extra={"extra_data": {"path": request.url.path, "status": exc.status_code}},
    )
    return JSONResponse(content=exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    kind, message = classify_validation_error(exc)
    logger.info(f"Rejected request to {request.url.path}: {message}")
    return _error_response(kind, message, 400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}")
    error = ServerError(str(exc) or type(exc).__name__)
    return JSONResponse(content=error.to_dict(), status_code=error.status_code)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
