"""Order lifecycle: creation, customer cancellation and admin status updates.

    PENDING --(admin)--------------------> COMPLETED
    PENDING --(cancel / last file removed)--> CANCELLED

COMPLETED and CANCELLED are terminal for customers. Admin updates may set any
status or payment status so mistakes can be corrected.
"""
import logging
from dataclasses import dataclass
from functools import partial

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from . import tokens
from .errors import (
    InvalidPaymentStatus,
    InvalidQuery,
    InvalidStatus,
    MissingFields,
    OrderNotFound,
    PaymentAlreadyProcessed,
    PhoneAlreadyRegistered,
    TokenNotFound,
    TokenPhoneMismatch,
    VersionConflict,
)
from .files import attach
from .messaging import cancellation_request_link
from .models import Customer, Order, OrderStatus, PaymentStatus
from .publisher import publish_order_created, publish_order_status_updated
from .validators import (
    validate_choice,
    validate_flag,
    validate_id_list,
    validate_order_files,
    validate_phone,
    validate_positive_int,
    validate_required,
    validate_status_transition,
    validate_token,
)

logger = logging.getLogger(__name__)

PROCESSED_PAYMENTS = (PaymentStatus.PAID, PaymentStatus.VERIFIED)


@dataclass
class CreatedOrder:
    order: Order
    token: str
    is_new_user: bool

    @property
    def total_amount(self) -> int:
        return self.order.total_amount

    def as_dict(self) -> dict:
        return {
            "orderId": self.order.pk,
            "tokenId": self.token,
            "isNewUser": self.is_new_user,
            "totalAmount": self.total_amount,
        }


def create_order(*, name=None, phone=None, copies=None, pages=None, files=None,
                 notes=None, is_new_user=False, token=None) -> CreatedOrder:
    """Validates and stores a new print order.

    Checks run in a fixed order so the client gets the most specific error:
    required fields, phone, counts, files, then the token for returning
    customers. A new user must not already own the phone; a returning user's
    token must exist and belong to the phone.
    """
    validate_required(
        {"name": name, "phone": phone, "copies": copies, "pages": pages},
        ("name", "phone", "copies", "pages"),
    )
    phone = validate_phone(phone)
    copies = validate_positive_int(copies, "copies")
    pages = validate_positive_int(pages, "pages")
    descriptors = validate_order_files(files, phone)
    is_new_user = validate_flag(is_new_user, "isNewUser")
    if not is_new_user:
        token = validate_token(token)

    with transaction.atomic():
        if is_new_user:
            if Customer.objects.filter(phone=phone).exists():
                raise PhoneAlreadyRegistered(field="phone")
            try:
                customer = tokens.register(phone)
            except IntegrityError as exc:
                raise PhoneAlreadyRegistered(field="phone") from exc
        else:
            customer = Customer.objects.filter(token=token).first()
            if customer is None:
                raise TokenNotFound(field="tokenId")
            if customer.phone != phone:
                raise TokenPhoneMismatch(field="phone")

        order = Order(
            customer=customer,
            name=name.strip(),
            phone=phone,
            token=customer.token,
            copies=copies,
            total_pages=pages,
            notes=(notes or "").strip() or None,
        )
        attach(order, descriptors)
        order.save()
        transaction.on_commit(
            partial(publish_order_created, order.pk, order.status, order.total_amount)
        )

    logger.info("created order %s for customer %s (%d)", order.pk, customer.pk, order.total_amount)
    return CreatedOrder(order=order, token=customer.token, is_new_user=is_new_user)


def cancel_order(order_id: str) -> Order:
    with transaction.atomic():
        order = Order.objects.for_update(order_id)
        validate_status_transition(order.status, OrderStatus.CANCELLED)
        if order.payment_status in PROCESSED_PAYMENTS:
            raise PaymentAlreadyProcessed(
                details={
                    "currentStatus": order.status,
                    "paymentStatus": order.payment_status,
                    "contactLink": cancellation_request_link(order.pk),
                }
            )
        order.apply_update(status=OrderStatus.CANCELLED)
        transaction.on_commit(
            partial(publish_order_status_updated, order.pk, order.status,
                    order.payment_status, order.version, {"by": "customer"})
        )
    logger.info("order %s cancelled by customer", order.pk)
    return order


def _validated_updates(status, payment_status) -> dict:
    if status is None and payment_status is None:
        raise MissingFields("Status or paymentStatus is required", field="status")
    fields = {}
    if status is not None:
        fields["status"] = validate_choice(status, OrderStatus, InvalidStatus, "status")
    if payment_status is not None:
        fields["payment_status"] = validate_choice(
            payment_status, PaymentStatus, InvalidPaymentStatus, "paymentStatus"
        )
    return fields


def admin_update(order_id: str, status=None, payment_status=None, version=None) -> Order:
    """Sets status and/or payment status without any transition checks.

    When ``version`` is given the update only applies if it still matches
    (optimistic concurrency); otherwise VersionConflict.
    """
    fields = _validated_updates(status, payment_status)
    if version is not None and (isinstance(version, bool) or not isinstance(version, int)):
        raise InvalidQuery("version must be an integer", field="version")

    with transaction.atomic():
        # Lock de fila para evitar 'lost updates'
        q = Order.objects.select_for_update().filter(pk=order_id)
        if version is not None:
            q = q.filter(version=version)
        row = q.first()

        if row is None:
            # Distinguir entre no existe vs. conflicto de versión
            if version is not None and Order.objects.filter(pk=order_id).exists():
                raise VersionConflict(details={"expectedVersion": version})
            raise OrderNotFound()

        row.apply_update(**fields)
        transaction.on_commit(
            partial(publish_order_status_updated, row.pk, row.status,
                    row.payment_status, row.version, {"by": "admin"})
        )
    logger.info("admin updated order %s: %s", row.pk, fields)
    return row


def admin_bulk_update(order_ids, status=None, payment_status=None) -> int:
    order_ids = validate_id_list(order_ids, "orderIds")
    fields = _validated_updates(status, payment_status)
    count = Order.objects.filter(pk__in=order_ids).update(
        version=F("version") + 1, updated_at=timezone.now(), **fields
    )
    logger.info("admin bulk-updated %d order(s): %s", count, fields)
    return count
