from rest_framework.views import exception_handler as drf_exception_handler, set_rollback
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger("taskboard.api")

INTERNAL_ERROR_MESSAGE = "Internal server error"


def flatten_validation_errors(detail, path=None):
    """
    Turn DRF's nested ``ValidationError.detail`` into a flat list of
    ``{"path": [...], "message": str, "code": str}`` entries.
    """
    path = path or []
    errors = []

    if isinstance(detail, dict):
        for key, value in detail.items():
            # non_field_errors belong to the object itself, not a field
            child_path = path if key == "non_field_errors" else path + [key]
            errors.extend(flatten_validation_errors(value, child_path))
    elif isinstance(detail, list):
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                errors.extend(flatten_validation_errors(value, path + [index]))
            else:
                errors.extend(flatten_validation_errors(value, path))
    else:
        errors.append({
            "path": path,
            "message": str(detail),
            "code": getattr(detail, "code", "invalid"),
        })

    return errors


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into the API's error format.

    - Validation errors -> 400 {"error": [field errors]}
    - Other handled errors -> their status with {"error": message}
    - Everything else -> 500 {"error": "Internal server error"}

    Success responses (2xx) are not touched.
    """
    response = drf_exception_handler(exc, context)

    # If DRF handled it, reshape the body but keep status + headers
    if response is not None:
        if isinstance(exc, ValidationError):
            response.data = {"error": flatten_validation_errors(exc.detail)}
        else:
            detail = getattr(exc, "detail", None)
            response.data = {"error": str(detail) if detail is not None else str(exc)}
        return response

    # Unhandled exceptions -> 500, never leak internals
    view = context.get("view") if context else None
    logger.exception(
        "Unhandled API exception in %s",
        view.__class__.__name__ if view is not None else "unknown view",
        exc_info=exc,
    )
    set_rollback()

    return Response(
        {"error": INTERNAL_ERROR_MESSAGE},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
