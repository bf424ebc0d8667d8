"""
Who may act on an order, and how its status is emphasized.
Both are pure lookups on the current status; transitions happen elsewhere.
"""

from dataclasses import dataclass
from enum import Enum

from .models import OrderStatus, ViewType

MESSAGEABLE_STATUSES = frozenset({
    OrderStatus.ACCEPTED.value,
    OrderStatus.PAID.value,
    OrderStatus.ACTIVE.value,
    OrderStatus.COMPLETED.value,
})


class Emphasis(str, Enum):
    DEFAULT = "default"
    SECONDARY = "secondary"
    OUTLINE = "outline"
    DESTRUCTIVE = "destructive"


STATUS_EMPHASIS = {
    OrderStatus.PENDING.value: Emphasis.DEFAULT,
    OrderStatus.ACCEPTED.value: Emphasis.SECONDARY,
    OrderStatus.COMPLETED.value: Emphasis.OUTLINE,
    OrderStatus.CANCELLED.value: Emphasis.DESTRUCTIVE,
}


@dataclass(frozen=True)
class OrderPermissions:
    can_accept_deny: bool = False
    can_pay: bool = False
    can_message: bool = False


def derive_permissions(status: str, view_type: ViewType) -> OrderPermissions:
    """
    Derive the available actions from (status, viewer role).

    Lender/provider may accept or deny a pending order, the borrower/hirer may
    pay an accepted one, and either side may message once it is accepted.
    """
    view_type = ViewType(view_type)
    return OrderPermissions(
        can_accept_deny=view_type is ViewType.LENT and status == OrderStatus.PENDING.value,
        can_pay=view_type is ViewType.BORROWED and status == OrderStatus.ACCEPTED.value,
        can_message=status in MESSAGEABLE_STATUSES,
    )


def status_emphasis(status: str) -> Emphasis:
    """Unknown statuses get the same emphasis as pending."""
    return STATUS_EMPHASIS.get(status, STATUS_EMPHASIS[OrderStatus.PENDING.value])
