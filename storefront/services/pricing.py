"""Order pricing from the catalog.

Unit prices come from the products table, never from the caller; a price
sent by the client is ignored. All products of an order are fetched with one
query.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Mapping, NamedTuple

from storefront.core.exceptions import PricingError
from storefront.db.store import DataStore, Filter

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class PricedLine(NamedTuple):
    product_id: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENT, rounding=ROUND_HALF_UP)


class PricedOrder(NamedTuple):
    lines: List[PricedLine]
    total: Decimal


class OrderPricing:
    def __init__(self, store: DataStore):
        self.store = store

    async def price_items(self, items: Iterable[Mapping[str, Any]]) -> PricedOrder:
        """
        Price cart items against the catalog.

        Args:
            items: Mappings with ``product_id`` and ``quantity``. Any ``price``
                key is ignored.

        Raises:
            PricingError: empty order, an item without ``product_id``, bad
                quantity, or a product that is missing, inactive or archived
        """
        items = list(items)
        if not items:
            raise PricingError("Order has no items")

        for item in items:
            if item.get("product_id") in (None, ""):
                raise PricingError(f"Order item has no product_id: {dict(item)!r}")
            quantity = item.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
                raise PricingError(f"Invalid quantity for product {item.get('product_id')}: {quantity!r}")
            if "price" in item:
                logger.debug("Ignoring client price for product %s", item.get("product_id"))

        product_ids = {str(item["product_id"]) for item in items}
        rows = await self.store.select(
            "products",
            columns=["id", "price", "is_active", "is_archived"],
            filters=[Filter.in_("id", product_ids)],
        )
        catalog = {str(row["id"]): row for row in rows}

        lines = []
        for item in items:
            product_id = str(item["product_id"])
            product = catalog.get(product_id)
            if product is None:
                raise PricingError(f"Product {product_id} not found")
            if product.get("is_archived") or product.get("is_active") is False:
                raise PricingError(f"Product {product_id} is not available")
            unit_price = Decimal(str(product["price"])).quantize(CENT, rounding=ROUND_HALF_UP)
            lines.append(PricedLine(product_id, item["quantity"], unit_price))

        total = sum((line.subtotal for line in lines), Decimal("0.00"))
        return PricedOrder(lines, total)
