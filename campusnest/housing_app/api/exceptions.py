import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import Throttled, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from housing_app.services.errors import AuthError, DataError, InsightsError, ServiceError, UploadError

logger = logging.getLogger(__name__)


# service error code -> HTTP status; anything unlisted falls back per class
SERVICE_STATUS = {
    "invalid_credentials": status.HTTP_400_BAD_REQUEST,
    "email_not_confirmed": status.HTTP_403_FORBIDDEN,
    "session_missing": status.HTTP_401_UNAUTHORIZED,
    "invalid_token": status.HTTP_401_UNAUTHORIZED,
    "refresh_token_not_found": status.HTTP_401_UNAUTHORIZED,
    "user_already_exists": status.HTTP_409_CONFLICT,
    "email_exists": status.HTTP_409_CONFLICT,
    "user_not_found": status.HTTP_404_NOT_FOUND,
    "bucket_not_found": status.HTTP_404_NOT_FOUND,
    "duplicate": status.HTTP_409_CONFLICT,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "not_configured": status.HTTP_503_SERVICE_UNAVAILABLE,
    "unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "upstream_error": status.HTTP_502_BAD_GATEWAY,
    "bad_response": status.HTTP_502_BAD_GATEWAY,
    "database_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "storage_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

SERVICE_FALLBACK = (
    (AuthError, status.HTTP_400_BAD_REQUEST, "auth_error"),
    (UploadError, status.HTTP_400_BAD_REQUEST, "upload_error"),
    (InsightsError, status.HTTP_502_BAD_GATEWAY, "insights_error"),
    (DataError, status.HTTP_400_BAD_REQUEST, "data_error"),
)


def _extract_field_errors(data: Any) -> Optional[Dict[str, list]]:
    """
    Turn DRF's error structure into {field: [messages]} or None.
    """
    if isinstance(data, dict):
        normalised = {}
        for key, value in data.items():
            if isinstance(value, (list, tuple)):
                normalised[key] = [str(v) for v in value]
            else:
                normalised[key] = [str(value)]
        return normalised
    return None


def _service_error_response(exc: ServiceError, path):
    status_code, fallback_code = status.HTTP_400_BAD_REQUEST, "error"
    for cls, cls_status, cls_code in SERVICE_FALLBACK:
        if isinstance(exc, cls):
            status_code, fallback_code = cls_status, cls_code
            break
    status_code = SERVICE_STATUS.get(exc.code, status_code)
    if status_code >= 500:
        logger.error("service error on %s: %s (%s)", path, exc.message, exc.code)
    body = {
        "ok": False,
        "code": exc.code or fallback_code,
        "message": exc.message,
        "detail": exc.message,
        "field_errors": None,
        "status": status_code,
        "path": path,
    }
    return Response(body, status=status_code)


def custom_exception_handler(exc, context):
    """
    Wrap DRF's default exception_handler to return a consistent JSON shape,
    while preserving a human-readable top-level 'detail' string.
    """
    request = context.get("request")
    path = request.get_full_path() if request else None

    if isinstance(exc, ServiceError):
        return _service_error_response(exc, path)

    response = exception_handler(exc, context)

    detail_text = None
    field_errors = None
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if response is None:
        # not an API exception; let Django's 500 handling take it
        return None

    status_code = response.status_code
    data = response.data

    if isinstance(data, dict):
        if "detail" in data:
            val = data["detail"]
            if isinstance(val, (list, tuple)) and val:
                detail_text = str(val[0])
            else:
                detail_text = str(val)

        if not detail_text and "non_field_errors" in data:
            nfe = data.get("non_field_errors")
            if isinstance(nfe, (list, tuple)) and nfe:
                detail_text = str(nfe[0])
            elif isinstance(nfe, str):
                detail_text = nfe

        # a single field error doubles as the headline
        if not detail_text and len(data.keys()) == 1:
            only_val = next(iter(data.values()))
            if isinstance(only_val, (list, tuple)) and only_val:
                detail_text = str(only_val[0])

        if "detail" not in data:
            field_errors = _extract_field_errors(data)
    elif isinstance(data, list) and data:
        detail_text = str(data[0])

    if isinstance(exc, ValidationError):
        code = "validation_error"
        message = "Invalid input."
    elif isinstance(exc, Throttled):
        code = "rate_limited"
        message = "Too many requests. Please wait before retrying."
    elif status_code == status.HTTP_401_UNAUTHORIZED:
        code = "unauthorised"
        message = "Authentication credentials were not provided or are invalid."
    elif status_code == status.HTTP_403_FORBIDDEN:
        code = "forbidden"
        message = "You do not have permission to perform this action."
    elif status_code == status.HTTP_404_NOT_FOUND or isinstance(exc, Http404):
        code = "not_found"
        message = "The requested resource was not found."
    else:
        code = "error"
        message = "An error occurred."

    body = {
        "ok": False,
        "code": code,
        "message": message,
        "detail": detail_text,
        "field_errors": field_errors,
        "status": status_code,
        "path": path,
    }
    return Response(body, status=status_code, headers=_passthrough_headers(response))


def _passthrough_headers(response):
    headers = {}
    for name in ("Retry-After", "WWW-Authenticate"):
        if response.has_header(name):
            headers[name] = response[name]
    return headers
