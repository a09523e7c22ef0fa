"""Admin capability tokens.

A correct passcode buys a signed, timestamped capability. Admin views accept
it from the ``admin-session`` cookie or an ``Authorization: Bearer`` header
and reject it once older than PRINTSHOP_ADMIN_SESSION_TTL seconds.
"""
from functools import wraps

from django.core import signing
from django.utils.crypto import constant_time_compare

from .conf import shop_setting
from .errors import AuthError, MissingFields
from .http import error_response

SESSION_COOKIE = "admin-session"
_SALT = "printshop.admin"
_SUBJECT = "admin"


def _signer() -> signing.TimestampSigner:
    return signing.TimestampSigner(salt=_SALT)


def issue_capability(passcode) -> str:
    if not isinstance(passcode, str) or not passcode.strip():
        raise MissingFields("Passcode is required", field="passcode")
    if not constant_time_compare(passcode.strip(), shop_setting("ADMIN_PASSCODE")):
        raise AuthError("Invalid passcode", suggestion="Please check your passcode and try again")
    return _signer().sign(_SUBJECT)


def check_capability(value) -> bool:
    if not value:
        return False
    try:
        subject = _signer().unsign(value, max_age=shop_setting("ADMIN_SESSION_TTL"))
    except signing.BadSignature:  # SignatureExpired included
        return False
    return subject == _SUBJECT


def capability_from_request(request):
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip()
    return request.COOKIES.get(SESSION_COOKIE)


def admin_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not check_capability(capability_from_request(request)):
            return error_response(AuthError())
        return view(request, *args, **kwargs)
    return wrapper
