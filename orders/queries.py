"""Read-side queries for the customer tracking page and the admin dashboard."""
from django.core.paginator import EmptyPage, Paginator
from django.db.models import Q

from . import tokens
from .conf import shop_setting
from .errors import InvalidPaymentStatus, InvalidQuery, InvalidStatus
from .models import Customer, Order, OrderStatus, PaymentStatus
from .validators import validate_choice, validate_page_number

ORDER_SORT_FIELDS = {
    "createdAt": "created_at",
    "totalAmount": "total_amount",
    "status": "status",
    "paymentStatus": "payment_status",
}
CUSTOMER_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "phone": "phone",
    "isVerified": "verified",
}


def paginate(queryset, page: int, per_page: int):
    paginator = Paginator(queryset, per_page)
    try:
        items = list(paginator.page(page).object_list)
    except EmptyPage:
        items = []
    total_pages = paginator.num_pages if paginator.count else 0
    return items, {
        "page": page,
        "limit": per_page,
        "totalCount": paginator.count,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def _limit(value) -> int:
    cap = shop_setting("ADMIN_PAGE_LIMIT")
    if value in (None, ""):
        return min(10, cap)
    try:
        limit = int(value)
    except (TypeError, ValueError):
        limit = 0
    if limit < 1:
        raise InvalidQuery("limit must be a positive integer", field="limit")
    return min(limit, cap)


def _ordering(sort_by, sort_order, fields: dict) -> str:
    sort_by = sort_by or "createdAt"
    sort_order = sort_order or "desc"
    if sort_by not in fields:
        raise InvalidQuery(
            "Invalid sort field",
            field="sortBy",
            suggestion=f"Sort field must be one of: {', '.join(fields)}",
        )
    if sort_order not in ("asc", "desc"):
        raise InvalidQuery(
            "Invalid sort order", field="sortOrder", suggestion="Sort order must be asc or desc"
        )
    return ("-" if sort_order == "desc" else "") + fields[sort_by]


def customer_orders(phone, token, page=None, q=""):
    """Orders of the customer currently holding ``token`` for ``phone``.

    Matches on the customer record, so orders placed before a token rotation
    stay visible under the new token.
    """
    customer = tokens.resolve(phone, token)
    qs = customer.orders.all()
    q = (q or "").strip()
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(id__icontains=q))
    return paginate(qs.order_by("-created_at"), validate_page_number(page),
                    shop_setting("ORDERS_PER_PAGE"))


def admin_orders(page=None, limit=None, status=None, payment_status=None, search=None,
                 sort_by=None, sort_order=None):
    page = validate_page_number(page)
    qs = Order.objects.select_related("customer")
    if status:
        qs = qs.filter(status=validate_choice(status, OrderStatus, InvalidStatus, "status"))
    if payment_status:
        qs = qs.filter(payment_status=validate_choice(
            payment_status, PaymentStatus, InvalidPaymentStatus, "paymentStatus"))
    search = (search or "").strip()
    if search:
        qs = qs.filter(
            Q(name__icontains=search) | Q(phone__icontains=search) | Q(token__icontains=search)
        )
    qs = qs.order_by(_ordering(sort_by, sort_order, ORDER_SORT_FIELDS))
    return paginate(qs, page, _limit(limit))


def admin_customers(page=None, limit=None, verified=None, search=None,
                    sort_by=None, sort_order=None):
    page = validate_page_number(page)
    qs = Customer.objects.prefetch_related("orders")
    if verified not in (None, ""):
        if verified not in ("true", "false"):
            raise InvalidQuery(
                "Invalid verified parameter",
                field="verified",
                suggestion="Verified must be true or false",
            )
        qs = qs.filter(verified=verified == "true")
    search = (search or "").strip()
    if search:
        qs = qs.filter(Q(phone__icontains=search) | Q(token__icontains=search))
    qs = qs.order_by(_ordering(sort_by, sort_order, CUSTOMER_SORT_FIELDS))
    return paginate(qs, page, _limit(limit))
