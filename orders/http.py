import logging
from functools import wraps

from django.db import DatabaseError
from django.http import JsonResponse

from .errors import ShopError, TransientStoreError

logger = logging.getLogger(__name__)


def _json(data, status=200):
    return JsonResponse(data, status=status, json_dumps_params={"ensure_ascii": False})


def ok(status=200, **data):
    return _json({"success": True, **data}, status)


def error_response(exc: ShopError):
    return _json(exc.as_dict(), exc.status)


def json_errors(view):
    """Renders ShopError as the JSON error envelope; store failures become 500s."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ShopError as exc:
            if exc.status >= 500:
                logger.error("%s failed: %s", view.__name__, exc.message)
            return error_response(exc)
        except DatabaseError:
            logger.exception("store failure in %s", view.__name__)
            return error_response(TransientStoreError())
    return wrapper
