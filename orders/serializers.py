from .models import Customer, Order


def serialize_customer(customer: Customer) -> dict:
    return {
        "id": customer.pk,
        "phone": customer.phone,
        "tokenId": customer.token,
        "isVerified": customer.verified,
        "createdAt": customer.created_at,
        "updatedAt": customer.updated_at,
    }


def serialize_order(order: Order, include_customer: bool = False) -> dict:
    data = {
        "id": order.pk,
        "name": order.name,
        "phone": order.phone,
        "tokenId": order.token,
        "copies": order.copies,
        "pages": order.total_pages,
        "totalAmount": order.total_amount,
        "files": [d.to_dict() for d in order.file_list],
        "status": order.status,
        "paymentStatus": order.payment_status,
        "notes": order.notes,
        "version": order.version,
        "createdAt": order.created_at,
        "updatedAt": order.updated_at,
    }
    if include_customer:
        customer = order.customer
        data["user"] = {
            "phone": customer.phone,
            "tokenId": customer.token,
            "isVerified": customer.verified,
        }
    return data


def serialize_order_summary(order: Order) -> dict:
    return {
        "id": order.pk,
        "name": order.name,
        "status": order.status,
        "totalAmount": order.total_amount,
        "createdAt": order.created_at,
    }
