import re
from concurrent.futures import ThreadPoolExecutor

import pytest
from django.db import connection

from orders import errors, tokens
from orders.models import Customer

from conftest import PHONE, TOKEN


def test_generated_token_format():
    assert re.fullmatch(r"TK-\d{13}-[a-z0-9]{9}", tokens.generate_token())


def test_generate_token_unique_across_threads():
    with ThreadPoolExecutor(max_workers=8) as pool:
        values = list(pool.map(lambda _: tokens.generate_token(), range(2000)))
    assert len(set(values)) == len(values)


@pytest.mark.django_db
def test_first_request_creates_unverified_customer():
    issued = tokens.issue_or_rotate(PHONE)
    assert issued.is_new is True
    customer = Customer.objects.get(phone=PHONE)
    assert customer.token == issued.token
    assert customer.verified is False


def test_second_request_rotates_token(customer):
    issued = tokens.issue_or_rotate(PHONE)
    assert issued.is_new is False
    assert issued.token != TOKEN
    customer.refresh_from_db()
    assert customer.token == issued.token
    assert Customer.objects.count() == 1


@pytest.mark.django_db
def test_invalid_phone_creates_nothing():
    with pytest.raises(errors.InvalidPhone):
        tokens.issue_or_rotate("12345")
    assert not Customer.objects.exists()


@pytest.mark.django_db
def test_no_two_customers_share_a_token():
    phones = [f"90000000{i:02d}" for i in range(40)]
    issued = [tokens.issue_or_rotate(p).token for p in phones]
    issued += [tokens.issue_or_rotate(p).token for p in phones[::2]]
    current = list(Customer.objects.values_list("token", flat=True))
    assert len(current) == len(set(current)) == 40
    assert len(set(issued)) == len(issued)


def test_collision_is_retried(customer, monkeypatch):
    candidates = iter([TOKEN, "TK-1700000000001-fresh0000"])
    monkeypatch.setattr(tokens, "generate_token", lambda: next(candidates))

    issued = tokens.issue_or_rotate("9123456789")

    assert issued.is_new
    assert issued.token == "TK-1700000000001-fresh0000"


def test_gives_up_after_three_collisions(customer, monkeypatch):
    calls = []

    def always_taken():
        calls.append(1)
        return TOKEN

    monkeypatch.setattr(tokens, "generate_token", always_taken)
    with pytest.raises(errors.TokenGenerationFailed):
        tokens.issue_or_rotate("9123456789")
    assert len(calls) == tokens.MAX_TOKEN_ATTEMPTS
    assert not Customer.objects.filter(phone="9123456789").exists()


def test_resolve_needs_phone_and_token_together(customer):
    assert tokens.resolve(PHONE, TOKEN) == customer
    Customer.objects.create(phone="9123456789", token="TK-1700000000002-other0000")
    with pytest.raises(errors.IdentityNotFound):
        tokens.resolve("9123456789", TOKEN)
    with pytest.raises(errors.IdentityNotFound):
        tokens.resolve(PHONE, "TK-1700000000002-other0000")


@pytest.mark.django_db(transaction=True)
def test_concurrent_requests_never_share_a_token():
    phones = [f"91000000{i:02d}" for i in range(24)]

    def issue(phone):
        try:
            return tokens.issue_or_rotate(phone).token
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=6) as pool:
        issued = list(pool.map(issue, phones + phones[::3]))

    stored = list(Customer.objects.values_list("token", flat=True))
    assert len(stored) == len(set(stored)) == len(phones)
    assert len(set(issued)) == len(issued)


@pytest.mark.parametrize("token", ["TK-short", "x", "TK-1700000000000-abcdefghj"])
def test_resolve_treats_wrong_tokens_as_unknown_identity(customer, token):
    with pytest.raises(errors.IdentityNotFound):
        tokens.resolve(PHONE, token)


@pytest.mark.django_db
@pytest.mark.parametrize("token", [None, "", "   "])
def test_resolve_requires_a_token(token):
    with pytest.raises(errors.TokenRequired):
        tokens.resolve(PHONE, token)
