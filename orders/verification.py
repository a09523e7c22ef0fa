"""Admin verification queue.

Verification is a manual trust flag: the customer messages the shop with
their token and the admin marks the phone as verified. It does not gate
order processing.
"""
import logging
from functools import partial

from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone

from .errors import IdentityNotFound
from .messaging import admin_verification_link
from .models import Customer, Order
from .publisher import publish_customer_verified
from .validators import validate_id_list

logger = logging.getLogger(__name__)


def list_unverified():
    """Unverified customers, newest first, with their orders for context."""
    customers = (
        Customer.objects.filter(verified=False)
        .prefetch_related(Prefetch("orders", queryset=Order.objects.order_by("-created_at")))
        .order_by("-created_at")
    )
    return [
        {
            "customer": customer,
            "orders": list(customer.orders.all()),
            "whatsappLink": admin_verification_link(customer.phone, customer.token),
        }
        for customer in customers
    ]


def verify(customer_id: str) -> Customer:
    """Marks one customer verified. Verifying twice is a no-op."""
    with transaction.atomic():
        customer = Customer.objects.select_for_update().filter(pk=customer_id).first()
        if customer is None:
            raise IdentityNotFound("Customer not found")
        if customer.verified:
            return customer
        customer.verified = True
        customer.save(update_fields=["verified", "updated_at"])
        transaction.on_commit(partial(publish_customer_verified, customer.pk, customer.phone))
    logger.info("verified customer %s", customer.pk)
    return customer


def verify_bulk(customer_ids, verified: bool = True) -> int:
    """Sets the flag on every listed customer; unknown ids are ignored."""
    customer_ids = validate_id_list(customer_ids, "userIds")
    count = Customer.objects.filter(pk__in=customer_ids).update(
        verified=verified, updated_at=timezone.now()
    )
    logger.info("bulk %s %d customer(s)", "verified" if verified else "unverified", count)
    return count
