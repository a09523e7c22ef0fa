from datetime import timedelta

from django.db.models import Count, Q, Sum
from django.utils import timezone

from .models import Customer, Order, OrderStatus, PaymentStatus


def _revenue(qs) -> int:
    return qs.aggregate(total=Sum("total_amount"))["total"] or 0


def _rate(part: int, whole: int) -> int:
    return round(part * 100 / whole) if whole else 0


def dashboard_stats(now=None) -> dict:
    """Counts and revenue figures for the admin dashboard.

    Revenue only counts orders that are COMPLETED with a VERIFIED payment;
    pending revenue is money marked PAID but not yet verified.
    """
    now = now or timezone.now()
    day_ago = now - timedelta(days=1)
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    orders = Order.objects.aggregate(
        total=Count("id"),
        pending=Count("id", filter=Q(status=OrderStatus.PENDING)),
        completed=Count("id", filter=Q(status=OrderStatus.COMPLETED)),
        cancelled=Count("id", filter=Q(status=OrderStatus.CANCELLED)),
        payment_pending=Count("id", filter=Q(payment_status=PaymentStatus.PENDING)),
        payment_paid=Count("id", filter=Q(payment_status=PaymentStatus.PAID)),
        payment_verified=Count("id", filter=Q(payment_status=PaymentStatus.VERIFIED)),
        last_day=Count("id", filter=Q(created_at__gte=day_ago)),
        last_week=Count("id", filter=Q(created_at__gte=week_ago)),
        last_month=Count("id", filter=Q(created_at__gte=month_ago)),
    )
    customers = Customer.objects.aggregate(
        total=Count("id"),
        verified=Count("id", filter=Q(verified=True)),
        new_last_week=Count("id", filter=Q(created_at__gte=week_ago)),
    )

    earned = Order.objects.filter(
        status=OrderStatus.COMPLETED, payment_status=PaymentStatus.VERIFIED
    )
    total_revenue = _revenue(earned)
    revenue_last_week = _revenue(earned.filter(created_at__gte=week_ago))

    return {
        "totalOrders": orders["total"],
        "pendingOrders": orders["pending"],
        "completedOrders": orders["completed"],
        "cancelledOrders": orders["cancelled"],
        "completionRate": _rate(orders["completed"], orders["total"]),
        "totalRevenue": total_revenue,
        "pendingRevenue": _revenue(Order.objects.filter(payment_status=PaymentStatus.PAID)),
        "averageOrderValue": (
            round(total_revenue / orders["completed"], 2) if orders["completed"] else 0
        ),
        "totalUsers": customers["total"],
        "verifiedUsers": customers["verified"],
        "pendingVerifications": customers["total"] - customers["verified"],
        "verificationRate": _rate(customers["verified"], customers["total"]),
        "recentOrders": orders["last_day"],
        "ordersLastWeek": orders["last_week"],
        "ordersLastMonth": orders["last_month"],
        "revenueLastWeek": revenue_last_week,
        "revenueLastMonth": _revenue(earned.filter(created_at__gte=month_ago)),
        "paymentStatusSummary": {
            "pending": orders["payment_pending"],
            "paid": orders["payment_paid"],
            "verified": orders["payment_verified"],
        },
        "recentActivity": {
            "newUsers": customers["new_last_week"],
            "newOrders": orders["last_week"],
            "newRevenue": revenue_last_week,
        },
    }
