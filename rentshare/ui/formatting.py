"""
Display helpers for the Orders page: relative times, money, routes and the
per-order card view model.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional
from urllib.parse import urlencode

from ..orders.models import OrderRecord, ViewType
from ..orders.permissions import Emphasis, OrderPermissions, derive_permissions, status_emphasis

MINUTES_IN_DAY = 1440
MINUTES_IN_MONTH = 43200
MINUTES_IN_YEAR = 525600

COUNTERPARTY_LABELS = {
    (ViewType.BORROWED, 'item'): "Borrowed from",
    (ViewType.BORROWED, 'service'): "Hired from",
    (ViewType.LENT, 'item'): "Lent to",
    (ViewType.LENT, 'service'): "Service for",
}


def time_ago(moment: datetime, now: Optional[datetime] = None) -> str:
    """Distance between `moment` and now in words, e.g. 'about 3 hours'."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    seconds = abs((now - moment).total_seconds())
    minutes = round(seconds / 60)

    if minutes < 2:
        return "less than a minute" if seconds < 30 else "1 minute"
    if minutes < 45:
        return f"{minutes} minutes"
    if minutes < 90:
        return "about 1 hour"
    if minutes < MINUTES_IN_DAY:
        return f"about {round(minutes / 60)} hours"
    if minutes < 2520:
        return "1 day"
    if minutes < MINUTES_IN_MONTH:
        return f"{round(minutes / MINUTES_IN_DAY)} days"
    if minutes < 86400:
        return f"about {round(minutes / MINUTES_IN_MONTH)} month" + ("s" if minutes >= 64800 else "")
    if minutes < MINUTES_IN_YEAR:
        return f"{round(minutes / MINUTES_IN_MONTH)} months"

    years, remainder = divmod(minutes, MINUTES_IN_YEAR)
    months_over = remainder // MINUTES_IN_MONTH
    if months_over < 3:
        return f"about {years} year" + ("s" if years > 1 else "")
    if months_over < 9:
        return f"over {years} year" + ("s" if years > 1 else "")
    return f"almost {years + 1} years"


def format_money(amount: float) -> str:
    return f"${amount:,.2f}"


def route_url(routes: Dict[str, str], name: str, query: Optional[Dict[str, str]] = None, **params) -> str:
    """Resolve a configured route, e.g. route_url(routes, 'order_details', id='42')."""
    path = routes.get(name, f"/{name}").format(**params)
    url = routes.get('base_url', '').rstrip('/') + path
    if query:
        url += '?' + urlencode(query)
    return url


@dataclass(frozen=True)
class OrderCardView:
    """Everything the card needs to render one order."""
    order_id: str
    order_type: str
    title: str
    image: Optional[str]
    counterparty_label: str
    counterparty_name: str
    badge: str
    emphasis: Emphasis
    amount: Optional[float]
    amount_text: Optional[str]
    quantity: Optional[int]
    ordered_ago: str
    notes: Optional[str]
    permissions: OrderPermissions
    details_url: str
    message_url: Optional[str]


def build_card_view(
    order: OrderRecord,
    view_type: ViewType,
    routes: Dict[str, str],
    now: Optional[datetime] = None
) -> OrderCardView:
    view_type = ViewType(view_type)
    permissions = derive_permissions(order.status, view_type)

    amount = order.final_amount or None
    quantity = getattr(order, 'quantity', None) if order.type == 'item' else None

    return OrderCardView(
        order_id=order.id,
        order_type=order.type,
        title=order.title,
        image=order.image,
        counterparty_label=COUNTERPARTY_LABELS[(view_type, order.type)],
        counterparty_name=order.counterparty_name,
        badge=f"{'Service' if order.type == 'service' else 'Item'} • {order.status}",
        emphasis=status_emphasis(order.status),
        amount=amount,
        amount_text=format_money(amount) if amount else None,
        quantity=quantity or None,
        ordered_ago=time_ago(order.created_at, now),
        notes=order.notes or None,
        permissions=permissions,
        details_url=route_url(routes, 'order_details', id=order.id),
        message_url=route_url(routes, 'messages', query={'order': order.id}) if permissions.can_message else None,
    )
