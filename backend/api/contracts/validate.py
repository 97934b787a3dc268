"""
Request validation at the route boundary.

parse_params() builds a Pydantic params model from raw request data;
validation_error_response() turns the Pydantic error into the standard
INVALID_PARAMS envelope:

{
    "error": {
        "code": "INVALID_PARAMS",
        "message": "session_id: Field required",
        "requestId": "uuid",
        "field": "session_id",
        "details": {"violations": [...]}
    }
}
"""

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from api.middleware.error_envelope import make_error_response

ModelT = TypeVar('ModelT', bound=BaseModel)


def parse_params(model_cls: Type[ModelT], data: Optional[Dict[str, Any]]) -> ModelT:
    """
    Validate raw params.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return model_cls.model_validate(dict(data or {}))


def validation_error_response(error: ValidationError):
    """Standard 400 INVALID_PARAMS envelope for a Pydantic ValidationError."""
    violations = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ())),
            "error": err.get("type"),
            "message": err.get("msg"),
        }
        for err in error.errors()
    ]
    first = violations[0] if violations else {"field": None, "message": "Invalid params"}
    message = f"{first['field']}: {first['message']}" if first.get("field") else first["message"]

    return make_error_response(
        "INVALID_PARAMS",
        message,
        field=first.get("field") or None,
        details={"violations": violations},
    )
