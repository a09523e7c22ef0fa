import pytest
from django.core.files.storage import FileSystemStorage

from orders.models import Customer, Order
from orders.pricing import calculate_total
from orders.storage import BlobStore

PHONE = "9876543210"
TOKEN = "TK-1700000000000-abcdefghi"


@pytest.fixture(autouse=True)
def shop_settings(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / "media")
    settings.PRINTSHOP_PRICE_PER_PAGE = 5
    settings.PRINTSHOP_ADMIN_PASSCODE = "letmein"
    settings.PRINTSHOP_ADMIN_WHATSAPP = "911234567890"
    return settings


@pytest.fixture
def blob_store(tmp_path):
    return BlobStore(FileSystemStorage(location=str(tmp_path / "blobs")))


@pytest.fixture
def descriptor():
    def make(name="doc.pdf", pages=1, size=1024, type="application/pdf", phone=PHONE):
        return {"name": name, "key": f"{phone}/{name}", "size": size, "type": type, "pages": pages}
    return make


@pytest.fixture
def customer(db):
    return Customer.objects.create(phone=PHONE, token=TOKEN)


@pytest.fixture
def make_order(customer, descriptor):
    """Stores an order directly, bypassing create_order validation."""
    def make(pages=(3, 2), copies=2, total_pages=None, **fields):
        files = [descriptor(name=f"file{i}.pdf", pages=p) for i, p in enumerate(pages, start=1)]
        total_pages = total_pages or sum(pages)
        return Order.objects.create(
            customer=customer,
            name="Asha",
            phone=customer.phone,
            token=customer.token,
            copies=copies,
            total_pages=total_pages,
            total_amount=calculate_total(total_pages, copies),
            files=files,
            **fields,
        )
    return make
