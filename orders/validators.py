import json
import os
import re
from dataclasses import asdict, dataclass

from django.template.defaultfilters import filesizeformat

from .conf import shop_setting
from .errors import (
    AlreadyTerminal,
    BadJSON,
    DuplicateFile,
    FileTooLarge,
    FileTypeInvalid,
    InvalidCount,
    InvalidFile,
    InvalidFlag,
    InvalidPhone,
    InvalidQuery,
    InvalidStatus,
    MissingFields,
    TokenRequired,
)

PHONE_RE = re.compile(r"^\d{10}$")
MIN_TOKEN_LENGTH = 10

ALLOWED_MIME_TYPES = {
    ".pdf": {"application/pdf"},
    ".doc": {"application/msword"},
    ".docx": {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"},
    ".jpg": {"image/jpeg", "image/jpg"},
    ".jpeg": {"image/jpeg", "image/jpg"},
    ".png": {"image/png"},
}


def parse_json_body(request):
    """
    Intenta decodificar el body del request como JSON y retorna un dict.
    Lanza BadJSON si falla o si el JSON no es un objeto.
    """
    try:
        body = request.body.decode("utf-8") if request.body else "{}"
        data = json.loads(body or "{}")
    except (UnicodeDecodeError, ValueError) as e:
        raise BadJSON(details=str(e))
    if not isinstance(data, dict):
        raise BadJSON("Request body must be a JSON object")
    return data


# Customer-facing transitions. Admin updates do not consult this table.
_ALLOWED_TRANSITIONS = {
    "PENDING":   {"COMPLETED", "CANCELLED"},
    "COMPLETED": set(),
    "CANCELLED": set(),
}


def validate_status_transition(current_status: str | None, new_status: str) -> bool:
    """
    Valida que el cambio de estado sea válido.
    - Si current_status es None, siempre permite (caso de creación).
    - Lanza AlreadyTerminal si el pedido ya está en un estado terminal.
    - Lanza InvalidStatus para cualquier otra transición no permitida.
    """
    if current_status is None:
        return True

    allowed = _ALLOWED_TRANSITIONS.get(current_status, set())
    if new_status in allowed:
        return True
    if not allowed:
        raise AlreadyTerminal(current_status)
    raise InvalidStatus(f"Cannot move order from {current_status} to {new_status}")


def validate_required(data: dict, fields) -> None:
    missing = [
        f for f in fields
        if data.get(f) is None or (isinstance(data.get(f), str) and not data[f].strip())
    ]
    if missing:
        raise MissingFields(
            f"Missing required fields: {', '.join(missing)}", field=missing[0]
        )


def validate_phone(phone) -> str:
    if not isinstance(phone, str) or not phone.strip():
        raise InvalidPhone("Phone number is required", field="phone")
    phone = phone.strip()
    if not PHONE_RE.match(phone):
        raise InvalidPhone(field="phone")
    return phone


def validate_positive_int(value, field: str) -> int:
    """Accepts ints and digit strings; rejects bools, floats and anything < 1."""
    if isinstance(value, bool):
        raise InvalidCount(field=field)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 1:
        raise InvalidCount(field=field)
    return value


def validate_flag(value, field: str) -> bool:
    """JSON booleans only; a missing flag is False."""
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidFlag(f"{field} must be true or false", field=field)
    return value


def validate_token(token) -> str:
    if not isinstance(token, str) or not token.strip():
        raise TokenRequired(field="tokenId")
    token = token.strip()
    if len(token) < MIN_TOKEN_LENGTH:
        raise TokenRequired("Token ID appears to be invalid", field="tokenId")
    return token


def validate_choice(value, choices, error_cls, field: str) -> str:
    if value not in choices.values:
        raise error_cls(
            f"{field} must be one of: {', '.join(choices.values)}", field=field
        )
    return value


def validate_page_number(page) -> int:
    if page in (None, ""):
        return 1
    try:
        num = int(page)
    except (TypeError, ValueError):
        num = 0
    if num < 1:
        raise InvalidQuery(
            "Page number must be a positive integer",
            field="page",
            suggestion="Page must be a positive integer",
        )
    return num


def validate_id_list(ids, field: str) -> list:
    if not isinstance(ids, list) or not ids:
        raise MissingFields(f"{field} are required", field=field)
    if not all(isinstance(i, str) and i.strip() for i in ids):
        raise InvalidQuery(f"Every entry in {field} must be a non-empty string", field=field)
    return [i.strip() for i in ids]


# ---- files -----------------------------------------------------------------

def sanitize_filename(filename: str) -> str:
    """Strips path separators and exotic characters from an uploaded name."""
    name = re.sub(r"[^a-zA-Z0-9.-]", "_", os.path.basename(filename or ""))
    name = re.sub(r"\.{2,}", ".", name)
    return name[:100]


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def validate_extension(filename: str) -> str:
    ext = file_extension(filename)
    allowed = shop_setting("ALLOWED_EXTENSIONS")
    if ext not in allowed:
        raise FileTypeInvalid(
            f"File type not allowed. Allowed types: {', '.join(allowed)}", field="files"
        )
    return ext


def validate_mime_type(filename: str, mime_type) -> str:
    ext = validate_extension(filename)
    if mime_type not in ALLOWED_MIME_TYPES.get(ext, ()):
        raise FileTypeInvalid(
            f"File type {mime_type} not supported for {filename}", field="files"
        )
    return mime_type


def validate_file_size(filename: str, size) -> int:
    limit = shop_setting("MAX_FILE_SIZE")
    if size > limit:
        raise FileTooLarge(
            f"File {filename} exceeds the {filesizeformat(limit)} limit", field="files"
        )
    return size


def blob_key(phone: str, name: str) -> str:
    """Storage key of an uploaded file: one directory per phone number."""
    return f"{phone}/{name}"


@dataclass(frozen=True)
class FileDescriptor:
    name: str
    key: str
    size: int
    type: str
    pages: int

    @classmethod
    def from_dict(cls, raw) -> "FileDescriptor":
        """Checks the shape of a stored or submitted descriptor.

        Upload limits are not applied here so orders stored under older
        limits stay readable; see :meth:`validate`.
        """
        if not isinstance(raw, dict):
            raise InvalidFile("File descriptor must be an object", field="files")
        name, key, mime = raw.get("name"), raw.get("key"), raw.get("type")
        if not isinstance(name, str) or not name.strip():
            raise InvalidFile("File descriptor is missing a name", field="files")
        if not isinstance(key, str) or not key.strip():
            raise InvalidFile(f"File {name} is missing a storage key", field="files")
        size = raw.get("size")
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise InvalidFile(f"File {name} has an invalid size", field="files")
        if not isinstance(mime, str):
            raise InvalidFile(f"File {name} has an invalid type", field="files")
        try:
            pages = validate_positive_int(raw.get("pages"), "files")
        except InvalidCount:
            raise InvalidFile(f"File {name} must have at least 1 page", field="files") from None
        return cls(name=name, key=key, size=size, type=mime, pages=pages)

    def validate(self, phone: str) -> "FileDescriptor":
        """Intake checks for a new order: current limits and ownership of the blob."""
        if self.key != blob_key(phone, self.name):
            raise InvalidFile(
                f"File {self.name} was not uploaded for this phone number",
                field="files",
                suggestion="Upload the file again before placing the order",
            )
        validate_mime_type(self.name, self.type)
        validate_file_size(self.name, self.size)
        return self

    def to_dict(self) -> dict:
        return asdict(self)


def parse_file_descriptors(raw) -> list[FileDescriptor]:
    """Reads the JSON file list of an order into typed descriptors."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidFile("files must be a list", field="files")
    return [FileDescriptor.from_dict(item) for item in raw]


def validate_order_files(raw, phone: str) -> list[FileDescriptor]:
    if not raw:
        raise InvalidFile("At least one file is required", field="files")
    descriptors = [d.validate(phone) for d in parse_file_descriptors(raw)]
    seen = set()
    for d in descriptors:
        if d.name in seen:
            raise DuplicateFile(f"File {d.name} appears more than once", field="files")
        seen.add(d.name)
    return descriptors
