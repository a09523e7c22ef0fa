from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import auth, lifecycle, queries, verification
from .conf import shop_setting
from .errors import MissingFields, OrderNotFound
from .http import json_errors, ok
from .models import Order
from .serializers import serialize_customer, serialize_order, serialize_order_summary
from .stats import dashboard_stats
from .validators import parse_json_body


@csrf_exempt
@require_http_methods(["POST", "DELETE"])
@json_errors
def session(request):
    if request.method == "DELETE":
        response = ok(message="Logout successful")
        response.delete_cookie(auth.SESSION_COOKIE)
        return response

    body = parse_json_body(request)
    capability = auth.issue_capability(body.get("passcode"))
    ttl = shop_setting("ADMIN_SESSION_TTL")
    response = ok(message="Login successful", token=capability, expiresIn=ttl)
    response.set_cookie(
        auth.SESSION_COOKIE, capability, max_age=ttl, httponly=True, samesite="Lax",
        secure=request.is_secure(),
    )
    return response


@json_errors
def _list_orders(request):
    p = request.GET
    orders, pagination = queries.admin_orders(
        page=p.get("page"), limit=p.get("limit"), status=p.get("status"),
        payment_status=p.get("paymentStatus"), search=p.get("search"),
        sort_by=p.get("sortBy"), sort_order=p.get("sortOrder"),
    )
    return ok(data={
        "orders": [serialize_order(o, include_customer=True) for o in orders],
        "pagination": pagination,
    })


@json_errors
def _bulk_update_orders(request):
    body = parse_json_body(request)
    updates = body.get("updates")
    if not isinstance(updates, dict):
        raise MissingFields(
            "Updates object is required", field="updates",
            suggestion="Provide an object with status and/or paymentStatus",
        )
    count = lifecycle.admin_bulk_update(
        body.get("orderIds"), updates.get("status"), updates.get("paymentStatus")
    )
    return ok(
        message=f"Successfully updated {count} order(s)",
        data={"updatedCount": count, "orderIds": body["orderIds"]},
    )


@csrf_exempt
@require_http_methods(["GET", "PATCH"])
@auth.admin_required
def orders(request):
    if request.method == "PATCH":
        return _bulk_update_orders(request)
    return _list_orders(request)


@json_errors
def _order_detail(request, order_id):
    order = Order.objects.select_related("customer").filter(pk=order_id).first()
    if order is None:
        raise OrderNotFound()
    return ok(data={"order": serialize_order(order, include_customer=True)})


@json_errors
def _update_order(request, order_id):
    body = parse_json_body(request)
    order = lifecycle.admin_update(
        order_id,
        status=body.get("status"),
        payment_status=body.get("paymentStatus"),
        version=body.get("version"),
    )
    return ok(order=serialize_order(order), message="Order updated successfully")


@csrf_exempt
@require_http_methods(["GET", "PATCH"])
@auth.admin_required
def order_detail(request, order_id: str):
    if request.method == "PATCH":
        return _update_order(request, order_id)
    return _order_detail(request, order_id)


@json_errors
def _list_users(request):
    p = request.GET
    customers, pagination = queries.admin_customers(
        page=p.get("page"), limit=p.get("limit"), verified=p.get("verified"),
        search=p.get("search"), sort_by=p.get("sortBy"), sort_order=p.get("sortOrder"),
    )
    users = []
    for customer in customers:
        data = serialize_customer(customer)
        data["orders"] = [serialize_order_summary(o) for o in customer.orders.all()]
        users.append(data)
    return ok(data={"users": users, "pagination": pagination})


@json_errors
def _bulk_verify(request):
    body = parse_json_body(request)
    is_verified = body.get("isVerified", True)
    if not isinstance(is_verified, bool):
        raise MissingFields(
            "Verification status is required", field="isVerified",
            suggestion="Provide a boolean value for verification status",
        )
    count = verification.verify_bulk(body.get("userIds"), verified=is_verified)
    action = "verified" if is_verified else "unverified"
    return ok(
        message=f"Successfully {action} {count} user(s)",
        data={"updatedCount": count, "userIds": body["userIds"], "isVerified": is_verified},
    )


@csrf_exempt
@require_http_methods(["GET", "PATCH"])
@auth.admin_required
def users(request):
    if request.method == "PATCH":
        return _bulk_verify(request)
    return _list_users(request)


@require_GET
@auth.admin_required
@json_errors
def unverified_users(request):
    queue = verification.list_unverified()
    return ok(data={"users": [
        {
            **serialize_customer(entry["customer"]),
            "orders": [serialize_order_summary(o) for o in entry["orders"]],
            "whatsappLink": entry["whatsappLink"],
        }
        for entry in queue
    ]})


@csrf_exempt
@require_POST
@auth.admin_required
@json_errors
def verify_user(request, customer_id: str):
    customer = verification.verify(customer_id)
    return ok(data={"user": serialize_customer(customer)}, message="User verified")


@require_GET
@auth.admin_required
@json_errors
def stats(request):
    return ok(data=dashboard_stats())
