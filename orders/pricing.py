from .conf import shop_setting


def calculate_total(total_pages: int, copies: int, price_per_page: int | None = None) -> int:
    """totalAmount = totalPages x copies x pricePerPage."""
    if price_per_page is None:
        price_per_page = shop_setting("PRICE_PER_PAGE")
    return total_pages * copies * price_per_page


def sum_pages(descriptors) -> int:
    return sum(d.pages for d in descriptors)
