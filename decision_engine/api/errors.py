"""Mapping from engine errors to HTTP errors."""

from fastapi import HTTPException

from decision_engine.errors import (
    AlreadyProcessedError,
    DecisionEngineError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)


def to_http_exception(error: DecisionEngineError) -> HTTPException:
    """Translate an engine error into the matching HTTP status."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, AlreadyProcessedError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, ValidationError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, StoreUnavailableError):
        return HTTPException(status_code=503, detail="Record store unavailable")
    return HTTPException(status_code=500, detail=str(error))
