"""File association store: attaching uploads to orders and detaching them."""
import logging
from functools import partial
from typing import NamedTuple

from django.db import transaction
from django.template.defaultfilters import filesizeformat

from .conf import shop_setting
from .errors import FileNotFound, FileTooLarge, InvalidFile, OrderNotEditable
from .models import Order, OrderStatus
from .pricing import calculate_total, sum_pages
from .publisher import publish_file_removed
from .storage import BlobStore, default_blob_store
from .validators import (
    FileDescriptor,
    blob_key,
    sanitize_filename,
    validate_file_size,
    validate_mime_type,
    validate_phone,
    validate_positive_int,
)

logger = logging.getLogger(__name__)


class DetachResult(NamedTuple):
    order: Order
    removed: FileDescriptor
    cancelled: bool


def attach(order: Order, descriptors: list[FileDescriptor]) -> Order:
    """Sets the order's files and prices it from the declared page count.

    Only used while creating an order; the descriptors must already be
    validated and stored. Does not save.
    """
    if not descriptors:
        raise InvalidFile("At least one file is required", field="files")
    order.files = [d.to_dict() for d in descriptors]
    order.total_amount = calculate_total(order.total_pages, order.copies)
    return order


def detach(order_id: str, file_name: str, store: BlobStore | None = None) -> DetachResult:
    """Removes one file from a pending order.

    Removing the last file cancels the order and leaves its price untouched;
    otherwise pages and amount are recomputed from the remaining files.
    """
    store = store or default_blob_store()
    with transaction.atomic():
        order = Order.objects.for_update(order_id)
        if not order.is_pending:
            raise OrderNotEditable(order.status)

        files = order.file_list
        target = next((f for f in files if f.name == file_name), None)
        if target is None:
            raise FileNotFound(details={"fileName": file_name})

        # only ever delete under the order owner's directory
        key = blob_key(order.phone, target.name)
        if not store.delete(key):
            logger.warning("blob %s for order %s left behind", key, order.pk)

        remaining = [f for f in files if f.name != file_name]
        if not remaining:
            order.apply_update(files=[], status=OrderStatus.CANCELLED)
        else:
            total_pages = sum_pages(remaining)
            order.apply_update(
                files=[f.to_dict() for f in remaining],
                total_pages=total_pages,
                total_amount=calculate_total(total_pages, order.copies),
            )

        cancelled = not remaining
        transaction.on_commit(
            partial(publish_file_removed, order.pk, file_name, cancelled, order.total_amount)
        )
    logger.info("removed %s from order %s (cancelled=%s)", file_name, order.pk, cancelled)
    return DetachResult(order, target, cancelled)


def store_uploads(phone, uploads, pages=None, store: BlobStore | None = None) -> list[FileDescriptor]:
    """Validates a batch of uploaded files, stores them under the phone's
    directory and returns their descriptors.

    ``pages`` holds one client supplied page count per upload; missing
    entries default to 1. Nothing is written unless the whole batch passes
    validation.
    """
    store = store or default_blob_store()
    phone = validate_phone(phone)
    if not uploads:
        raise InvalidFile("No files provided", field="files")
    max_files = shop_setting("MAX_FILES")
    if len(uploads) > max_files:
        raise InvalidFile(f"Maximum {max_files} files allowed", field="files")

    pages = list(pages or [])
    counts = []
    total = 0
    for idx, upload in enumerate(uploads):
        validate_mime_type(upload.name, upload.content_type)
        validate_file_size(upload.name, upload.size)
        total += upload.size
        raw = pages[idx] if idx < len(pages) and pages[idx] not in (None, "") else 1
        counts.append(validate_positive_int(raw, "pages"))
    limit = shop_setting("MAX_TOTAL_UPLOAD")
    if total > limit:
        raise FileTooLarge(
            f"Upload batch exceeds {filesizeformat(limit)} in total", field="files"
        )

    descriptors = []
    taken = set()
    for upload, count in zip(uploads, counts):
        name = store.available_name(phone, sanitize_filename(upload.name), taken)
        taken.add(name)
        key = store.put(blob_key(phone, name), upload)
        name = key.rsplit("/", 1)[-1]
        descriptors.append(
            FileDescriptor(name=name, key=key, size=upload.size, type=upload.content_type, pages=count)
        )
    logger.info("stored %d file(s) for %s", len(descriptors), phone)
    return descriptors
