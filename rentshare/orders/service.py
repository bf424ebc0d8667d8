"""
Order Service.
Loads the borrowed/hired and lent/provided order lists for a user.

Each list is built from two concurrent queries (item orders and service
orders). Rows are tagged with their type, the joined listing and counterparty
are normalized, and the two results are concatenated. A failure of either
query degrades the whole list to empty.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Dict, Any, Optional

from pydantic import ValidationError

from .client import BackendClient
from .models import OrderLists, OrderRecord, ViewType, order_list_adapter

logger = logging.getLogger(__name__)

LISTING_FIELDS = "title,images,type"
PROFILE_FIELDS = "name,avatar_url"


@dataclass(frozen=True)
class OrderQuery:
    """One side of a loader: which table, which role column, which counterparty."""
    order_type: str
    table: str
    role_column: str
    counterparty: str
    counterparty_column: str

    @property
    def select(self) -> str:
        return (
            f"*, listing:listings({LISTING_FIELDS}), "
            f"{self.counterparty}:profiles!{self.counterparty_column}({PROFILE_FIELDS})"
        )


BORROWED_QUERIES = (
    OrderQuery('item', 'orders', 'buyer_id', 'seller', 'seller_id'),
    OrderQuery('service', 'service_orders', 'buyer_id', 'provider', 'provider_id'),
)

LENT_QUERIES = (
    OrderQuery('item', 'orders', 'seller_id', 'buyer', 'buyer_id'),
    OrderQuery('service', 'service_orders', 'provider_id', 'buyer', 'buyer_id'),
)

QUERIES = {
    ViewType.BORROWED: BORROWED_QUERIES,
    ViewType.LENT: LENT_QUERIES,
}


def _first(value: Any) -> Optional[Dict[str, Any]]:
    """Embedded relations may come back as an object or a one-element list."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def normalize_row(row: Dict[str, Any], query: OrderQuery) -> Dict[str, Any]:
    """Tag a raw row and move its joined data under `listing` / `other_user`."""
    record = dict(row)

    record['type'] = query.order_type
    record['listing'] = _first(record.pop('listing', None))
    record['other_user'] = _first(record.pop(query.counterparty, None))
    return record


class OrderService:
    """Service to load the two order views for the current user."""

    def __init__(self, client: BackendClient):
        self.client = client

    def _run_query(self, query: OrderQuery, user_id: str) -> Optional[List[Dict[str, Any]]]:
        rows = self.client.select_orders(query.table, query.select, query.role_column, user_id)
        if rows is None:
            return None
        return [normalize_row(row, query) for row in rows]

    def load(self, view_type: ViewType, user_id: Optional[str]) -> List[OrderRecord]:
        """
        Load one view: item orders followed by service orders.

        Returns:
            Merged list of tagged records; empty if either query failed
        """
        if not user_id:
            return []

        view_type = ViewType(view_type)
        item_query, service_query = QUERIES[view_type]

        try:
            with ThreadPoolExecutor(max_workers=2) as executor:
                item_future = executor.submit(self._run_query, item_query, user_id)
                service_future = executor.submit(self._run_query, service_query, user_id)
                item_rows = item_future.result()
                service_rows = service_future.result()
        except Exception as e:
            logger.error(f"Failed to load {view_type.value} orders for {user_id}: {e}")
            return []

        if item_rows is None or service_rows is None:
            logger.warning(f"{view_type.value} orders unavailable for {user_id}, showing none")
            return []

        try:
            # Cross-type order is item list then service list, not re-sorted
            orders = order_list_adapter.validate_python(item_rows + service_rows)
        except ValidationError as e:
            logger.error(f"Malformed {view_type.value} order rows for {user_id}: {e}")
            return []

        logger.info(
            f"Loaded {len(orders)} {view_type.value} orders "
            f"({len(item_rows)} items, {len(service_rows)} services)"
        )
        return orders

    def load_borrowed(self, user_id: Optional[str]) -> List[OrderRecord]:
        """Orders where the user is the buyer/hirer."""
        return self.load(ViewType.BORROWED, user_id)

    def load_lent(self, user_id: Optional[str]) -> List[OrderRecord]:
        """Orders where the user is the seller/provider."""
        return self.load(ViewType.LENT, user_id)

    def load_all(self, user_id: Optional[str]) -> OrderLists:
        """Run both loaders independently and concurrently."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            borrowed = executor.submit(self.load_borrowed, user_id)
            lent = executor.submit(self.load_lent, user_id)
            return OrderLists(borrowed=borrowed.result(), lent=lent.result())
