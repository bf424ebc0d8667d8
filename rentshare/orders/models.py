"""
Order view models.
Item orders and service orders share one shape, tagged by `type`.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PAID = "paid"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ViewType(str, Enum):
    """Which side of the order the signed-in user is on."""
    BORROWED = "borrowed"
    LENT = "lent"


class Listing(BaseModel):
    """Catalog entry joined onto an order."""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    type: Optional[str] = None


class Profile(BaseModel):
    """Counterparty profile joined onto an order."""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    avatar_url: Optional[str] = None


class _OrderBase(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    buyer_id: Optional[str] = None
    # Kept as a raw string so statuses added on the backend still load
    status: str
    final_amount: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    listing: Optional[Listing] = None
    other_user: Optional[Profile] = None

    @property
    def title(self) -> str:
        if self.listing and self.listing.title:
            return self.listing.title
        return "Untitled"

    @property
    def counterparty_name(self) -> str:
        if self.other_user and self.other_user.name:
            return self.other_user.name
        return "Unknown"

    @property
    def image(self) -> Optional[str]:
        if self.listing and self.listing.images:
            return self.listing.images[0]
        return None


class ItemOrder(_OrderBase):
    """Transaction for a physical item (`orders` table)."""
    type: Literal["item"] = "item"
    seller_id: Optional[str] = None
    quantity: Optional[int] = None


class ServiceOrder(_OrderBase):
    """Transaction for a hired service (`service_orders` table)."""
    type: Literal["service"] = "service"
    provider_id: Optional[str] = None


OrderRecord = Annotated[Union[ItemOrder, ServiceOrder], Field(discriminator="type")]

order_list_adapter = TypeAdapter(List[OrderRecord])


class OrderLists(NamedTuple):
    borrowed: List[OrderRecord]
    lent: List[OrderRecord]
