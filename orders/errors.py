"""Error taxonomy shared by the order services and the JSON views.

Every error carries a machine readable ``code``, a human readable message and
optionally a ``suggestion`` the client can show next to it. Views render them
with :meth:`ShopError.as_dict` and use :attr:`ShopError.status` as the HTTP
status.
"""


class ShopError(Exception):
    status = 500
    code = "SERVER"
    default_message = "Something went wrong"
    default_suggestion = None

    def __init__(self, message=None, *, suggestion=None, field=None, details=None):
        self.message = message or self.default_message
        self.suggestion = suggestion or self.default_suggestion
        self.field = field
        self.details = details
        super().__init__(self.message)

    def as_dict(self) -> dict:
        payload = {"success": False, "error": self.message, "code": self.code}
        if self.field:
            payload["field"] = self.field
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        if self.details is not None:
            payload["details"] = self.details
        return payload


# ---- kinds -----------------------------------------------------------------

class ValidationError(ShopError):
    """Malformed client input. Never retried."""
    status = 400
    code = "VALIDATION"
    default_message = "Invalid request"


class AuthError(ShopError):
    status = 401
    code = "UNAUTHORIZED"
    default_message = "Admin authentication required"
    default_suggestion = "Log in to the admin dashboard again"


class NotFoundError(ShopError):
    status = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class ConflictError(ShopError):
    status = 409
    code = "CONFLICT"
    default_message = "Conflicting request"


class StateError(ShopError):
    """The operation is not valid for the order's current state."""
    status = 400
    code = "INVALID_STATE"
    default_message = "Operation not allowed in the current state"


class TransientStoreError(ShopError):
    status = 500
    code = "DATABASE_OPERATION_FAILED"
    default_message = "Database operation failed"
    default_suggestion = "Please try again later"


# ---- validation ------------------------------------------------------------

class BadJSON(ValidationError):
    """Se lanza cuando el cuerpo no es JSON válido."""
    code = "INVALID_JSON"
    default_message = "Invalid JSON in request body"
    default_suggestion = "Please check your request format"


class MissingFields(ValidationError):
    code = "MISSING_FIELDS"
    default_message = "Missing required fields"
    default_suggestion = "Please fill in all required fields"


class InvalidPhone(ValidationError):
    code = "PHONE_INVALID"
    default_message = "Please enter a valid 10-digit mobile number"


class InvalidCount(ValidationError):
    default_message = "Copies and pages must be at least 1"


class InvalidFile(ValidationError):
    code = "INVALID_FILE"
    default_message = "Invalid file descriptor"


class FileTypeInvalid(InvalidFile):
    code = "FILE_TYPE_INVALID"
    default_message = "File type not allowed"
    default_suggestion = "Allowed types: PDF, DOC, DOCX, JPG, JPEG, PNG"


class FileTooLarge(InvalidFile):
    code = "FILE_TOO_LARGE"
    default_message = "File exceeds the size limit"


class TokenRequired(ValidationError):
    code = "TOKEN_REQUIRED"
    default_message = "Token ID is required for existing users"
    default_suggestion = "Enter the Token ID you received with your first order"


class InvalidStatus(ValidationError):
    code = "INVALID_STATUS"
    default_message = "Invalid status value"


class InvalidPaymentStatus(ValidationError):
    code = "INVALID_PAYMENT_STATUS"
    default_message = "Invalid paymentStatus value"


class InvalidFlag(ValidationError):
    code = "INVALID_FLAG"
    default_message = "Invalid boolean value"


class InvalidQuery(ValidationError):
    default_message = "Invalid query parameter"


class TokenPhoneMismatch(ValidationError):
    code = "TOKEN_MISMATCH"
    default_message = "This Token ID does not belong to the phone number entered"
    default_suggestion = "Check the phone number you registered with"


# ---- conflicts -------------------------------------------------------------

class PhoneAlreadyRegistered(ConflictError):
    code = "PHONE_EXISTS"
    default_message = "This phone number is already registered"
    default_suggestion = (
        "If you are an existing user, please uncheck \"I'm new user\" and enter your Token ID"
    )


class DuplicateFile(ConflictError):
    code = "DUPLICATE_FILE"
    default_message = "Duplicate file name in order"
    default_suggestion = "Please use a different filename"


class VersionConflict(ConflictError):
    code = "VERSION_CONFLICT"
    default_message = "Order was modified by someone else"
    default_suggestion = "Reload the order and try again"


class PaymentAlreadyProcessed(ConflictError):
    code = "PAYMENT_REQUIRED"
    default_message = "Cannot cancel paid order"
    default_suggestion = "Please contact admin to cancel this order as payment has been processed"


# ---- not found -------------------------------------------------------------

class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"
    default_message = "Order not found"
    default_suggestion = "Check if the order ID is correct"


class FileNotFound(NotFoundError):
    code = "FILE_NOT_FOUND"
    default_message = "File not found in order"


class IdentityNotFound(NotFoundError):
    code = "IDENTITY_NOT_FOUND"
    default_message = "User not found or invalid credentials"
    default_suggestion = "Check your phone number and Token ID"


class TokenNotFound(NotFoundError):
    code = "TOKEN_INVALID"
    default_message = "Invalid Token ID"
    default_suggestion = "Request a new token with your phone number"


# ---- state -----------------------------------------------------------------

class OrderNotEditable(StateError):
    code = "ORDER_NOT_EDITABLE"
    default_message = "Can only remove files from pending orders"

    def __init__(self, current_status, **kwargs):
        kwargs.setdefault("details", {"currentStatus": current_status})
        super().__init__(**kwargs)


class AlreadyTerminal(StateError):
    code = "ORDER_CANNOT_CANCEL"
    default_message = "Order cannot be cancelled"

    _SUGGESTIONS = {
        "COMPLETED": "This order has already been completed",
        "CANCELLED": "This order has already been cancelled",
    }

    def __init__(self, current_status, **kwargs):
        kwargs.setdefault(
            "suggestion",
            self._SUGGESTIONS.get(current_status, "Only pending orders can be cancelled"),
        )
        kwargs.setdefault("details", {"currentStatus": current_status})
        super().__init__(**kwargs)


# ---- store -----------------------------------------------------------------

class TokenGenerationFailed(TransientStoreError):
    code = "TOKEN_GENERATION_FAILED"
    default_message = "Failed to generate unique token after multiple attempts"
