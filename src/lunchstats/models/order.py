"""Order and rating models."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.date_utils import format_date_key, is_valid_date_key


class MenuItem(BaseModel):
    """Menu item as ordered by a user."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    label: str = ''
    description: str = ''
    quantity: int = 1
    price: float = 0
    section: Optional[str] = None
    options: str = ''
    modifications: Dict[str, List[Any]] = Field(default_factory=dict)
    special_request: Optional[str] = Field(default=None, alias='specialRequest')
    full_description: str = Field(default='', alias='fullDescription')

    @model_validator(mode='before')
    @classmethod
    def _from_string_or_name(cls, data):
        # Older records store plain strings or use 'name' instead of 'label'
        if isinstance(data, str):
            return {'label': data}
        if isinstance(data, dict) and not data.get('label') and data.get('name'):
            data = {**data, 'label': data['name']}
        return data

    @model_validator(mode='after')
    def _default_description(self):
        if not self.full_description:
            self.full_description = self.label
        return self

    @property
    def normalized_label(self) -> str:
        return self.label.strip().lower()

    def __str__(self) -> str:
        return self.full_description or self.label


class OrderRecord(BaseModel):
    """A user's order from one restaurant on one delivery date."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias='userId', min_length=1)
    restaurant_id: str = Field(alias='restaurantId', min_length=1)
    order_date: str = Field(alias='orderDate')
    order_id: Optional[str] = Field(default=None, alias='orderId')
    items: List[MenuItem] = Field(default_factory=list)

    @field_validator('order_date', mode='before')
    @classmethod
    def _normalize_date(cls, value):
        return format_date_key(value)

    @property
    def key(self):
        return (self.user_id, self.restaurant_id, self.order_date)


class RatingRecord(BaseModel):
    """A user's 1-4 rating of one order."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias='userId', min_length=1)
    restaurant_id: str = Field(alias='restaurantId', min_length=1)
    order_date: str = Field(alias='orderDate')
    rating: int = Field(ge=1, le=4)
    comment: str = ''
    items: List[MenuItem] = Field(default_factory=list)

    @field_validator('order_date')
    @classmethod
    def _validate_date(cls, value: str) -> str:
        if not is_valid_date_key(value):
            raise ValueError('orderDate must be in YYYY-MM-DD format')
        return value

    @property
    def key(self):
        return (self.user_id, self.restaurant_id, self.order_date)

    def to_payload(self) -> dict:
        payload = self.model_dump(by_alias=True, exclude={'items'})
        if self.items:
            payload['items'] = [item.model_dump(by_alias=True) for item in self.items]
        return payload


class PastOrder(BaseModel):
    """One dated entry of a user's order history with a restaurant."""

    date: str
    items: List[MenuItem] = Field(default_factory=list)


class LastRating(BaseModel):
    rating: int
    timestamp: Optional[str] = None
    emoji: Optional[str] = None


class UserOrderHistory(BaseModel):
    """Summary of a user's orders from one restaurant, newest first."""

    model_config = ConfigDict(populate_by_name=True)

    total_orders: int = Field(default=0, alias='totalOrders')
    last_order_date: Optional[str] = Field(default=None, alias='lastOrderDate')
    last_order_items: List[MenuItem] = Field(default_factory=list, alias='lastOrderItems')
    order_dates: List[str] = Field(default_factory=list, alias='orderDates')
    recent_orders: List[PastOrder] = Field(default_factory=list, alias='recentOrders')
    last_rating: Optional[LastRating] = Field(default=None, alias='lastRating')

    @property
    def last_item_purchased(self) -> Optional[MenuItem]:
        return self.last_order_items[-1] if self.last_order_items else None
