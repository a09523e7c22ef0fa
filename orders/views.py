from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from . import files, lifecycle, queries, tokens
from .http import json_errors, ok
from .messaging import customer_verification_link
from .serializers import serialize_order
from .validators import parse_json_body


@csrf_exempt
@require_POST
@json_errors
def issue_token(request):
    body = parse_json_body(request)
    issued = tokens.issue_or_rotate(body.get("phone"))
    return ok(
        tokenId=issued.token,
        isNewUser=issued.is_new,
        verificationLink=customer_verification_link(issued.token),
        message="New user created with token" if issued.is_new else "Token rotated successfully",
    )


@csrf_exempt
@require_POST
@json_errors
def upload_files(request):
    uploads = request.FILES.getlist("files")
    descriptors = files.store_uploads(
        request.POST.get("phone"), uploads, pages=request.POST.getlist("pages")
    )
    return ok(
        files=[d.to_dict() for d in descriptors],
        message=f"{len(descriptors)} file(s) uploaded successfully",
    )


@json_errors
def _create_order(request):
    body = parse_json_body(request)
    created = lifecycle.create_order(
        name=body.get("name"),
        phone=body.get("phone"),
        copies=body.get("copies"),
        pages=body.get("pages"),
        files=body.get("files"),
        notes=body.get("notes"),
        is_new_user=body.get("isNewUser", False),
        token=body.get("tokenId"),
    )
    data = created.as_dict()
    if created.is_new_user:
        data["verificationLink"] = customer_verification_link(created.token)
    return ok(201, message="Order created successfully", **data)


@json_errors
def _list_orders(request):
    params = request.GET
    orders, pagination = queries.customer_orders(
        params.get("phone"), params.get("tokenId"), page=params.get("page"), q=params.get("q")
    )
    return ok(orders=[serialize_order(o) for o in orders], pagination=pagination)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def orders(request):
    if request.method == "POST":
        return _create_order(request)
    return _list_orders(request)


@csrf_exempt
@require_POST
@json_errors
def cancel_order(request, order_id: str):
    order = lifecycle.cancel_order(order_id)
    return ok(order=serialize_order(order), message="Order cancelled successfully")


@csrf_exempt
@require_http_methods(["DELETE"])
@json_errors
def remove_file(request, order_id: str, file_name: str):
    result = files.detach(order_id, file_name)
    if result.cancelled:
        return ok(
            message="File removed and order cancelled (no files remaining)",
            order=serialize_order(result.order),
            orderCancelled=True,
        )
    return ok(
        message="File removed successfully",
        order=serialize_order(result.order),
        orderCancelled=False,
    )
