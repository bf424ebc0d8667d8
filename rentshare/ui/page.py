"""
Orders page state.
Holds the two order lists for the signed-in user and keeps them in step
with actions taken on any order.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from ..auth.session import UserSession
from ..orders.actions import OrderActionBus, OrderActionCompleted
from ..orders.models import OrderRecord, ViewType
from ..orders.service import OrderService
from .formatting import OrderCardView, build_card_view, route_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmptyState:
    """Shown in place of the card grid when a tab has no orders."""
    icon: str
    heading: str
    message: str
    # (label, url, primary)
    links: Tuple[Tuple[str, str, bool], ...]


EMPTY_STATES = {
    ViewType.BORROWED: (
        "🛍️",
        "No borrowed or hired records",
        "Browse items or hire services to get started",
        (("Browse Items", 'browse'), ("Find Services", 'services')),
    ),
    ViewType.LENT: (
        "🔧",
        "No lending or service records",
        "Create listings or offer your skills",
        (("Create Item Listing", 'create_listing'), ("Offer a Service", 'create_service')),
    ),
}

TAB_TITLES = {
    ViewType.BORROWED: "Borrowed / Hired",
    ViewType.LENT: "Lent / Provided",
}

TabContent = Union[EmptyState, List[OrderCardView]]


def empty_state(view_type: ViewType, routes: Dict[str, str]) -> EmptyState:
    icon, heading, message, links = EMPTY_STATES[ViewType(view_type)]
    return EmptyState(
        icon=icon,
        heading=heading,
        message=message,
        links=tuple(
            (label, route_url(routes, route), index == 0)
            for index, (label, route) in enumerate(links)
        ),
    )


class OrdersPage:
    """
    Page controller for the Orders view.

    Subscribes to the action bus on construction: any completed action
    re-runs both loaders, so the borrowed and lent tabs never diverge.
    """

    def __init__(
        self,
        session: UserSession,
        service: OrderService,
        bus: OrderActionBus,
        routes: Optional[Dict[str, str]] = None
    ):
        self.session = session
        self.service = service
        self.bus = bus
        self.routes = routes or {}
        self.borrowed: List[OrderRecord] = []
        self.lent: List[OrderRecord] = []
        self.loaded = False
        bus.subscribe(self._on_action_completed)

    def refresh(self) -> None:
        """Re-fetch both order lists."""
        lists = self.service.load_all(self.session.user_id)
        self.borrowed = lists.borrowed
        self.lent = lists.lent
        self.loaded = True

    def ensure_loaded(self) -> None:
        if not self.loaded:
            self.refresh()

    def close(self) -> None:
        self.bus.unsubscribe(self._on_action_completed)

    def _on_action_completed(self, event: OrderActionCompleted) -> None:
        logger.info(f"Refreshing orders after {event.action} on {event.order_id}")
        self.refresh()

    def orders(self, view_type: ViewType) -> List[OrderRecord]:
        return self.borrowed if ViewType(view_type) is ViewType.BORROWED else self.lent

    def tab_label(self, view_type: ViewType) -> str:
        view_type = ViewType(view_type)
        return f"{TAB_TITLES[view_type]} ({len(self.orders(view_type))})"

    def tab(self, view_type: ViewType, now: Optional[datetime] = None) -> TabContent:
        """Either the empty state or one card view per order."""
        orders = self.orders(view_type)
        if not orders:
            return empty_state(view_type, self.routes)
        return [build_card_view(order, view_type, self.routes, now) for order in orders]
