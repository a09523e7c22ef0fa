import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from orders import errors, files
from orders.models import Order, OrderStatus
from orders.pricing import calculate_total
from orders.serializers import serialize_order
from orders.storage import BlobStore

from conftest import PHONE


class BrokenStorage:
    def delete(self, key):
        raise OSError("disk gone")


def pdf(name="doc.pdf", size=100, content_type="application/pdf"):
    return SimpleUploadedFile(name, b"x" * size, content_type=content_type)


def test_calculate_total_uses_configured_rate(settings):
    assert calculate_total(5, 2) == 50
    settings.PRINTSHOP_PRICE_PER_PAGE = 3
    assert calculate_total(5, 2) == 30


def test_attach_prices_from_declared_pages(customer, descriptor):
    order = Order(customer=customer, copies=2, total_pages=10)
    files.attach(order, [files.FileDescriptor.from_dict(descriptor(pages=1))])
    assert order.total_amount == 10 * 2 * 5
    assert order.files[0]["name"] == "doc.pdf"


def test_attach_requires_files(customer):
    with pytest.raises(errors.InvalidFile):
        files.attach(Order(customer=customer, copies=1, total_pages=1), [])


def test_removing_one_file_recomputes_price(make_order, blob_store):
    order = make_order(pages=(3, 2), copies=2)
    assert order.total_amount == 50

    result = files.detach(order.pk, "file1.pdf", store=blob_store)

    assert result.cancelled is False
    order.refresh_from_db()
    assert [f["name"] for f in order.files] == ["file2.pdf"]
    assert order.total_pages == 2
    assert order.total_amount == 2 * 2 * 5
    assert order.status == OrderStatus.PENDING
    assert order.version == 1


def test_removing_last_file_cancels_and_keeps_amount(make_order, blob_store):
    order = make_order(pages=(3, 2), copies=2)
    files.detach(order.pk, "file1.pdf", store=blob_store)

    result = files.detach(order.pk, "file2.pdf", store=blob_store)

    assert result.cancelled is True
    order.refresh_from_db()
    assert order.status == OrderStatus.CANCELLED
    assert order.files == []
    assert order.total_amount == 20
    assert order.total_pages == 2


@pytest.mark.parametrize("count", [1, 4])
def test_removing_every_file_always_ends_cancelled(make_order, blob_store, count):
    order = make_order(pages=tuple(range(1, count + 1)))
    for i in range(1, count + 1):
        files.detach(order.pk, f"file{i}.pdf", store=blob_store)
    order.refresh_from_db()
    assert order.status == OrderStatus.CANCELLED
    assert order.files == []


@pytest.mark.parametrize("status", [OrderStatus.COMPLETED, OrderStatus.CANCELLED])
def test_terminal_orders_are_not_editable(make_order, blob_store, status):
    order = make_order(status=status)
    before = (order.files, order.total_pages, order.total_amount)

    with pytest.raises(errors.OrderNotEditable) as exc:
        files.detach(order.pk, "file1.pdf", store=blob_store)

    assert exc.value.details == {"currentStatus": status}
    order.refresh_from_db()
    assert (order.files, order.total_pages, order.total_amount) == before


def test_unknown_file_and_order(make_order, blob_store):
    order = make_order()
    with pytest.raises(errors.FileNotFound):
        files.detach(order.pk, "nope.pdf", store=blob_store)
    with pytest.raises(errors.OrderNotFound):
        files.detach("missing", "file1.pdf", store=blob_store)


def test_blob_delete_failure_does_not_block_removal(make_order, caplog):
    order = make_order(pages=(3, 2))
    result = files.detach(order.pk, "file1.pdf", store=BlobStore(BrokenStorage()))
    assert result.order.total_pages == 2
    assert "could not delete blob" in caplog.text


def test_detach_deletes_the_blob(make_order, blob_store):
    blob_store.put(f"{PHONE}/file1.pdf", pdf())
    order = make_order()
    files.detach(order.pk, "file1.pdf", store=blob_store)
    assert not blob_store.exists(f"{PHONE}/file1.pdf")


def test_detach_publishes_after_commit(make_order, blob_store, monkeypatch,
                                       django_capture_on_commit_callbacks):
    sent = []
    monkeypatch.setattr(files, "publish_file_removed", lambda *args: sent.append(args))
    order = make_order(pages=(3,))
    with django_capture_on_commit_callbacks(execute=True):
        files.detach(order.pk, "file1.pdf", store=blob_store)
    assert sent == [(order.pk, "file1.pdf", True, order.total_amount)]


def test_store_uploads_resolves_name_collisions(blob_store):
    first = files.store_uploads(PHONE, [pdf("My Doc.pdf")], store=blob_store)
    second = files.store_uploads(PHONE, [pdf("My Doc.pdf"), pdf("My Doc.pdf")], pages=["4", ""],
                                 store=blob_store)

    assert first[0].name == "My_Doc.pdf"
    assert [d.name for d in second] == ["My_Doc (1).pdf", "My_Doc (2).pdf"]
    assert [d.pages for d in second] == [4, 1]
    assert all(blob_store.exists(d.key) for d in first + second)


def test_store_uploads_validates_whole_batch_first(blob_store):
    with pytest.raises(errors.FileTypeInvalid):
        files.store_uploads(PHONE, [pdf("ok.pdf"), pdf("bad.txt", content_type="text/plain")],
                            store=blob_store)
    assert not blob_store.exists(f"{PHONE}/ok.pdf")


def test_store_uploads_limits(blob_store, settings):
    settings.PRINTSHOP_MAX_FILE_SIZE = 50
    with pytest.raises(errors.FileTooLarge):
        files.store_uploads(PHONE, [pdf(size=51)], store=blob_store)

    settings.PRINTSHOP_MAX_FILE_SIZE = 100
    settings.PRINTSHOP_MAX_TOTAL_UPLOAD = 150
    with pytest.raises(errors.FileTooLarge):
        files.store_uploads(PHONE, [pdf("a.pdf"), pdf("b.pdf")], store=blob_store)

    settings.PRINTSHOP_MAX_FILES = 1
    with pytest.raises(errors.InvalidFile):
        files.store_uploads(PHONE, [pdf("a.pdf", 10), pdf("b.pdf", 10)], store=blob_store)

    with pytest.raises(errors.InvalidPhone):
        files.store_uploads("123", [pdf()], store=blob_store)


def test_detach_only_deletes_inside_the_owners_directory(make_order, blob_store, descriptor):
    blob_store.put("9111111111/thesis.pdf", pdf())
    blob_store.put(f"{PHONE}/file1.pdf", pdf())
    order = make_order(pages=(3, 2))
    tampered = [{**descriptor(name="file1.pdf", pages=3), "key": "9111111111/thesis.pdf"},
                descriptor(name="file2.pdf", pages=2)]
    Order.objects.filter(pk=order.pk).update(files=tampered)

    files.detach(order.pk, "file1.pdf", store=blob_store)

    assert blob_store.exists("9111111111/thesis.pdf")
    assert not blob_store.exists(f"{PHONE}/file1.pdf")


def test_lowered_limits_do_not_lock_existing_orders(make_order, blob_store, settings):
    order = make_order(pages=(3, 2))
    settings.PRINTSHOP_MAX_FILE_SIZE = 512
    settings.PRINTSHOP_ALLOWED_EXTENSIONS = (".png",)

    assert serialize_order(Order.objects.get(pk=order.pk))["files"][0]["size"] == 1024
    result = files.detach(order.pk, "file1.pdf", store=blob_store)

    assert result.order.total_pages == 2
