"""
Order action controls.
Accept/deny for lenders, pay for borrowers. Every successful action is
announced on the action bus so pages can re-fetch their lists.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from .client import BackendClient
from .models import OrderStatus

logger = logging.getLogger(__name__)

ORDER_TABLES = {
    'item': 'orders',
    'service': 'service_orders',
}


@dataclass(frozen=True)
class OrderActionCompleted:
    """Emitted after an action changed an order on the backend."""
    order_id: str
    order_type: str
    action: str


Subscriber = Callable[[OrderActionCompleted], None]


class OrderActionBus:
    """In-process channel between action controls and the pages showing orders."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, event: OrderActionCompleted) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        logger.info(f"Order {event.order_id} ({event.order_type}): {event.action} completed")
        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Subscriber failed handling {event.action} on {event.order_id}: {e}")


class OrderActions:
    """State-changing controls; the backend owns the actual transitions."""

    def __init__(self, client: BackendClient, bus: OrderActionBus, payment_function: str = "create-payment"):
        self.client = client
        self.bus = bus
        self.payment_function = payment_function

    def _set_status(self, order_id: str, order_type: str, status: OrderStatus, action: str) -> bool:
        table = ORDER_TABLES.get(order_type)
        if table is None:
            logger.error(f"Unknown order type '{order_type}' for order {order_id}")
            return False

        updated = self.client.update_status(table, order_id, status.value)
        if updated is None:
            logger.error(f"Could not {action} order {order_id}")
            return False

        self.bus.publish(OrderActionCompleted(order_id, order_type, action))
        return True

    def accept(self, order_id: str, order_type: str) -> bool:
        return self._set_status(order_id, order_type, OrderStatus.ACCEPTED, 'accept')

    def deny(self, order_id: str, order_type: str) -> bool:
        return self._set_status(order_id, order_type, OrderStatus.CANCELLED, 'deny')

    def pay(self, order_id: str, order_type: str, amount: float) -> Optional[str]:
        """
        Start payment for an accepted order.

        Returns:
            Checkout URL from the payment function ('' if it returned none),
            or None if the call failed
        """
        if order_type not in ORDER_TABLES:
            logger.error(f"Unknown order type '{order_type}' for order {order_id}")
            return None

        result = self.client.invoke_function(self.payment_function, {
            'order_id': order_id,
            'order_type': order_type,
            'amount': float(amount),
        })
        if result is None:
            logger.error(f"Payment could not be started for order {order_id}")
            return None

        self.bus.publish(OrderActionCompleted(order_id, order_type, 'pay'))
        return result.get('url') or ''
