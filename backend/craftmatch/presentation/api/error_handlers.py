"""Exception handlers — translate domain errors into the API error envelope.

Every error response is ``{"success": false, "error": {code, message, suggestion}}``.
Raw exception text from unexpected failures is never sent to the caller.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from craftmatch.application.schemas import ErrorDetailSchema, ErrorResponse
from craftmatch.domain.exceptions import (
    EntityNotFoundError,
    InvalidRequestError,
    MatchingPipelineError,
    RetrievalUnavailableError,
)

logger = logging.getLogger(__name__)

INVALID_REQUEST = "INVALID_REQUEST"
INTERNAL_ERROR = "INTERNAL_ERROR"
NOT_FOUND = "NOT_FOUND"
NO_ARTISANS_AVAILABLE = "NO_ARTISANS_AVAILABLE"

_RETRY_LATER = "The matching service is temporarily unavailable. Please try again shortly."


def error_response(
    status_code: int,
    code: str,
    message: str,
    suggestion: str | None = None,
    search_id: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetailSchema(
            code=code, message=message, suggestion=suggestion, search_id=search_id
        )
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


async def _invalid_request(request: Request, exc: InvalidRequestError) -> JSONResponse:
    if exc.field in (None, "query"):
        suggestion = "Describe the craft, material or product you are looking for."
    else:
        suggestion = f"Check the '{exc.field}' value and try again."
    return error_response(status.HTTP_400_BAD_REQUEST, INVALID_REQUEST, exc.message, suggestion=suggestion)


async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())[1:])
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        INVALID_REQUEST,
        "; ".join(problems) or "Invalid request",
        suggestion="Check the request fields and try again.",
    )


async def _entity_not_found(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND, str(exc))


async def _retrieval_unavailable(request: Request, exc: RetrievalUnavailableError) -> JSONResponse:
    logger.error("Responding 500: %s", exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        INTERNAL_ERROR,
        "Artisan profiles could not be retrieved.",
        suggestion=_RETRY_LATER,
    )


async def _pipeline_failure(request: Request, exc: MatchingPipelineError) -> JSONResponse:
    logger.error("Responding 500: %s", exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        INTERNAL_ERROR,
        "The match request could not be completed.",
        suggestion=_RETRY_LATER,
        search_id=exc.search_id,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidRequestError, _invalid_request)
    app.add_exception_handler(RequestValidationError, _request_validation)
    app.add_exception_handler(EntityNotFoundError, _entity_not_found)
    app.add_exception_handler(RetrievalUnavailableError, _retrieval_unavailable)
    app.add_exception_handler(MatchingPipelineError, _pipeline_failure)
