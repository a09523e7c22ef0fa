"""Identity and token service: one customer per phone, one rotating token each."""
import logging
import secrets
import string
import time
from typing import Callable, NamedTuple

from django.db import IntegrityError, transaction
from django.utils import timezone

from .errors import IdentityNotFound, TokenGenerationFailed, TokenRequired
from .models import Customer
from .validators import validate_phone

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "TK"
MAX_TOKEN_ATTEMPTS = 3
_ALPHABET = string.ascii_lowercase + string.digits


class IssuedToken(NamedTuple):
    token: str
    is_new: bool
    customer: Customer


def generate_token() -> str:
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{TOKEN_PREFIX}-{millis}-{suffix}"


def with_unique_token(write: Callable[[str], object], attempts: int = MAX_TOKEN_ATTEMPTS,
                      generate: Callable[[], str] | None = None):
    """Runs ``write(token)`` with fresh tokens until one is accepted by the store.

    Each attempt runs in its own savepoint. An IntegrityError that is not a
    token collision (e.g. a duplicate phone) is re-raised untouched.
    """
    generate = generate or generate_token
    for attempt in range(1, attempts + 1):
        token = generate()
        try:
            with transaction.atomic():
                return write(token)
        except IntegrityError:
            if not Customer.objects.filter(token=token).exists():
                raise
            logger.warning("token collision, retrying (attempt %d of %d)", attempt, attempts)
    raise TokenGenerationFailed()


def register(phone: str) -> Customer:
    """Creates the customer for an unseen phone. IntegrityError if it exists."""
    return with_unique_token(lambda token: Customer.objects.create(phone=phone, token=token))


def rotate(customer: Customer) -> str:
    def _write(token):
        Customer.objects.filter(pk=customer.pk).update(token=token, updated_at=timezone.now())
        return token

    customer.token = with_unique_token(_write)
    return customer.token


def issue_or_rotate(phone) -> IssuedToken:
    phone = validate_phone(phone)
    customer = Customer.objects.filter(phone=phone).first()
    if customer is None:
        try:
            customer = register(phone)
        except IntegrityError:
            # concurrent registration of the same phone; fall through to rotation
            customer = Customer.objects.get(phone=phone)
        else:
            logger.info("registered customer %s", customer.pk)
            return IssuedToken(customer.token, True, customer)
    token = rotate(customer)
    logger.info("rotated token for customer %s", customer.pk)
    return IssuedToken(token, False, customer)


def resolve(phone, token) -> Customer:
    """Looks the customer up by phone AND token together.

    A missing token is a validation error; any other token that does not
    match the phone's current one is IdentityNotFound.
    """
    phone = validate_phone(phone)
    if not isinstance(token, str) or not token.strip():
        raise TokenRequired(field="tokenId")
    token = token.strip()
    customer = Customer.objects.filter(phone=phone, token=token).first()
    if customer is None:
        raise IdentityNotFound()
    return customer
