import pytest

from orders import errors, verification
from orders.models import Customer

from conftest import PHONE, TOKEN


def test_verify_is_idempotent(customer, monkeypatch, django_capture_on_commit_callbacks):
    sent = []
    monkeypatch.setattr(verification, "publish_customer_verified", lambda *a: sent.append(a))

    with django_capture_on_commit_callbacks(execute=True):
        assert verification.verify(customer.pk).verified is True
    with django_capture_on_commit_callbacks(execute=True):
        assert verification.verify(customer.pk).verified is True

    assert sent == [(customer.pk, PHONE)]


@pytest.mark.django_db
def test_verify_unknown_customer():
    with pytest.raises(errors.IdentityNotFound):
        verification.verify("missing")


def test_unverified_queue_includes_orders_and_link(make_order):
    order = make_order()
    Customer.objects.create(phone="9123456789", token="TK-1700000000001-other0000", verified=True)

    queue = verification.list_unverified()

    assert len(queue) == 1
    entry = queue[0]
    assert entry["customer"].phone == PHONE
    assert [o.pk for o in entry["orders"]] == [order.pk]
    assert entry["whatsappLink"] == f"https://wa.me/{PHONE}?text=verified%20%23{TOKEN}"


def test_bulk_verify_and_unverify(customer):
    other = Customer.objects.create(phone="9123456789", token="TK-1700000000001-other0000")
    assert verification.verify_bulk([customer.pk, other.pk, "missing"]) == 2
    assert Customer.objects.filter(verified=True).count() == 2
    assert verification.verify_bulk([other.pk], verified=False) == 1
    assert list(Customer.objects.filter(verified=True)) == [customer]


@pytest.mark.django_db
@pytest.mark.parametrize("ids", [None, [], "abc", [1, 2]])
def test_bulk_verify_needs_id_list(ids):
    with pytest.raises(errors.ValidationError):
        verification.verify_bulk(ids)
