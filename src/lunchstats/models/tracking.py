"""Appearance tracking models."""

from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..api.errors import PartialReconciliationFailure
from ..utils.date_utils import format_date_key


class UrlContextKind(str, Enum):
    """Which page shape a navigation path was recognized as."""

    DELIVERY = 'delivery'
    DAY = 'day'
    TODAY = 'today'
    UNRECOGNIZED = 'unrecognized'
    PARSE_ERROR = 'parse_error'


class UrlContext(BaseModel):
    """Temporal context derived from a navigation path."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: Optional[str] = None
    delivery_id: Optional[str] = Field(default=None, alias='deliveryId')
    is_day_page: bool = Field(default=False, alias='isDayPage')
    kind: UrlContextKind = UrlContextKind.UNRECOGNIZED

    @property
    def has_temporal_anchor(self) -> bool:
        return self.date is not None


class ObservationStatus(str, Enum):
    """Availability of a restaurant at the time it was observed."""

    AVAILABLE = 'available'
    SOLD_OUT = 'soldout'
    ORDERING_CLOSED = 'ordering_closed'
    ORDER_PLACED = 'order_placed'

    @property
    def counts_as_soldout(self) -> bool:
        return self is ObservationStatus.SOLD_OUT


class ScrapeObservation(BaseModel):
    """One restaurant seen on a delivery date."""

    model_config = ConfigDict(populate_by_name=True)

    restaurant_id: str = Field(alias='restaurantId', min_length=1)
    restaurant_name: Optional[str] = Field(default=None, alias='restaurantName')
    status: ObservationStatus = ObservationStatus.AVAILABLE
    observed_at: str = Field(alias='observedAt')
    image_url: Optional[str] = Field(default=None, alias='imageUrl')

    @field_validator('restaurant_id', mode='before')
    @classmethod
    def _strip_id(cls, value):
        return value.strip() if isinstance(value, str) else value


class TrackingUpdate(BaseModel):
    """Dates to add to one restaurant's remote history."""

    model_config = ConfigDict(populate_by_name=True)

    restaurant_id: str = Field(alias='restaurantId')
    appearance_dates_to_add: List[str] = Field(default_factory=list, alias='appearanceDatesToAdd')
    soldout_dates_to_add: List[str] = Field(default_factory=list, alias='soldoutDatesToAdd')

    @field_validator('appearance_dates_to_add', 'soldout_dates_to_add', mode='before')
    @classmethod
    def _unique_sorted_keys(cls, value) -> List[str]:
        return sorted({format_date_key(item) for item in value})

    @property
    def is_empty(self) -> bool:
        return not self.appearance_dates_to_add and not self.soldout_dates_to_add

    def to_payload(self) -> Dict[str, object]:
        """Wire body for the appearance update endpoint."""
        return self.model_dump(by_alias=True)


class ReconciliationResult(BaseModel):
    """Outcome of one reconciliation pass over a batch of observations.

    ``failures`` is keyed by restaurant id for appearance updates, and by
    ``menu:<id>`` or ``order:<id>`` for menus and orders recorded from a page.
    """

    submitted: List[TrackingUpdate] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failures: Dict[str, str] = Field(default_factory=dict)
    dropped: int = 0
    menus_recorded: List[str] = Field(default_factory=list)
    orders_recorded: List[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> List[str]:
        return [update.restaurant_id for update in self.submitted]

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def raise_for_failures(self) -> None:
        """Raise PartialReconciliationFailure if any restaurant failed to submit."""
        if self.failures:
            raise PartialReconciliationFailure(dict(self.failures), self.succeeded)
