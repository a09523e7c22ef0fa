import uuid

from django.db import models
from django.utils import timezone

from .errors import OrderNotFound
from .validators import parse_file_descriptors


def new_id() -> str:
    return uuid.uuid4().hex


class OrderStatus(models.TextChoices):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING"
    PAID = "PAID"
    VERIFIED = "VERIFIED"


class Customer(models.Model):
    """One per phone number. The token is the customer's recovery code."""

    id = models.CharField(primary_key=True, max_length=32, default=new_id, editable=False)
    phone = models.CharField(max_length=10, unique=True)
    token = models.CharField(max_length=64, unique=True)
    verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.phone}:{self.token}:{'verified' if self.verified else 'unverified'}"


class OrderQuerySet(models.QuerySet):
    def for_update(self, order_id: str) -> "Order":
        """Row-locks the order for the rest of the surrounding transaction."""
        order = self.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise OrderNotFound()
        return order


class Order(models.Model):
    id = models.CharField(primary_key=True, max_length=32, default=new_id, editable=False)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="orders")
    name = models.CharField(max_length=120)
    # snapshot of the customer's phone and token when the order was placed
    phone = models.CharField(max_length=10)
    token = models.CharField(max_length=64)
    copies = models.PositiveIntegerField()
    total_pages = models.PositiveIntegerField()
    total_amount = models.IntegerField()
    files = models.JSONField(default=list)
    status = models.CharField(max_length=16, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    version = models.IntegerField(default=0)  # control optimista

    objects = OrderQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "payment_status"], name="order_status_payment_idx"),
            models.Index(fields=["phone"], name="order_phone_idx"),
        ]

    def __str__(self):
        return f"{self.id}:{self.status}:{self.version}"

    @property
    def file_list(self):
        return parse_file_descriptors(self.files)

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    def apply_update(self, **fields) -> None:
        """Single-row UPDATE that bumps ``version``, then reloads the instance."""
        type(self).objects.filter(pk=self.pk).update(
            version=models.F("version") + 1,
            updated_at=timezone.now(),
            **fields,
        )
        self.refresh_from_db()
