"""Restaurant availability extraction from lunch delivery pages.

The delivery site renders its page props as JSON in the ``data-page``
attribute of ``<div id="app">``. Day pages carry ``props.lunchDay.deliveries``,
delivery pages carry a single ``props.delivery``. A delivery may include its
``menu`` (sections referencing item ids) and, on delivery pages, the user's
``orders``.
"""

import json
import logging
from datetime import datetime, time
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from ..config import tracking_config
from ..models.order import MenuItem, OrderRecord
from ..models.tracking import ObservationStatus, ScrapeObservation
from .date_utils import DateInput, format_date_key

logger = logging.getLogger(__name__)


def parse_page_data(html: str) -> Optional[Dict[str, Any]]:
    """Read the page props JSON from the app element of a rendered page."""
    if not html:
        return None

    soup = BeautifulSoup(html, 'lxml')
    app_element = soup.find(id='app')
    if app_element is None:
        logger.debug("No #app element found in page")
        return None

    raw = app_element.get('data-page')
    if not raw:
        logger.debug("#app element has no data-page attribute")
        return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Could not decode page data: %s", e)
        return None
    return data if isinstance(data, dict) else None


def get_deliveries(page_data: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Get the deliveries listed on a page, day page or delivery page."""
    if not isinstance(page_data, dict):
        return []
    props = page_data.get('props', page_data)
    if not isinstance(props, dict):
        return []

    deliveries = (props.get('lunchDay') or {}).get('deliveries')
    if isinstance(deliveries, list) and deliveries:
        return [delivery for delivery in deliveries if isinstance(delivery, dict)]

    delivery = props.get('delivery')
    if isinstance(delivery, dict) and delivery.get('restaurant'):
        return [delivery]
    return []


def classify_delivery(
    delivery: Dict[str, Any],
    observed_at: str,
    now: Optional[datetime] = None,
    cutoff_hour: Optional[int] = None,
) -> ObservationStatus:
    """Decide how a delivery looked to the user when the page was scraped.

    A delivery with no slots left counts as sold out only while ordering is
    still open, i.e. before the cutoff hour of the delivery day. Afterwards
    an empty slot count just means ordering closed.
    """
    if delivery.get('order'):
        return ObservationStatus.ORDER_PLACED

    if delivery.get('isCancelled') or delivery.get('isSuspended'):
        return ObservationStatus.ORDERING_CLOSED

    if delivery.get('numSlotsAvailable') == 0:
        if cutoff_hour is None:
            cutoff_hour = tracking_config.soldout_cutoff_hour
        now = now or datetime.now()
        cutoff = datetime.combine(datetime.fromisoformat(observed_at).date(), time(hour=cutoff_hour))
        if now < cutoff:
            return ObservationStatus.SOLD_OUT
        return ObservationStatus.ORDERING_CLOSED

    if delivery.get('isTakingOrders') is False:
        return ObservationStatus.ORDERING_CLOSED

    return ObservationStatus.AVAILABLE


def extract_observations(
    page_data: Optional[Dict[str, Any]],
    observed_at,
    now: Optional[datetime] = None,
    cutoff_hour: Optional[int] = None,
) -> List[ScrapeObservation]:
    """Turn page props into one observation per offered restaurant.

    Args:
        page_data: Decoded page props
        observed_at: Delivery date the page is about
        now: Time of the scrape, used for the sold-out cutoff
        cutoff_hour: Hour after which an empty slot count means ordering closed
    """
    try:
        date_key = format_date_key(observed_at)
    except ValueError:
        logger.warning("No usable delivery date %r, skipping page", observed_at)
        return []

    observations = []
    for delivery in get_deliveries(page_data):
        restaurant = delivery.get('restaurant') or {}
        restaurant_id = str(restaurant.get('id') or '').strip()
        if not restaurant_id:
            logger.debug("Skipping delivery %s without restaurant id", delivery.get('id'))
            continue

        observations.append(ScrapeObservation(
            restaurant_id=restaurant_id,
            restaurant_name=restaurant.get('name'),
            status=classify_delivery(delivery, date_key, now=now, cutoff_hour=cutoff_hour),
            observed_at=date_key,
            image_url=restaurant.get('logo') or restaurant.get('picture'),
        ))

    return observations


def extract_menu(delivery: Dict[str, Any]) -> List[MenuItem]:
    """Get the menu items of a delivery, labelled with their section."""
    menu = delivery.get('menu')
    if not isinstance(menu, dict):
        return []
    sections = menu.get('sections')
    items = menu.get('items')
    if not isinstance(sections, list) or not isinstance(items, list):
        return []

    items_by_id = {item.get('id'): item for item in items if isinstance(item, dict)}
    menu_items = []
    for section in sections:
        if not isinstance(section, dict) or not isinstance(section.get('items'), list):
            continue
        for item_id in section['items']:
            item = items_by_id.get(item_id)
            if not item or not item.get('label'):
                continue
            menu_items.append(MenuItem(
                id=str(item_id),
                label=item['label'],
                description=item.get('description') or '',
                price=item.get('price') or 0,
                section=section.get('label') or 'Unknown',
            ))
    return menu_items


def build_full_description(
    label: str,
    description: str = '',
    modifications: Optional[Dict[str, List[Any]]] = None,
    special_request: Optional[str] = None,
) -> str:
    """Describe an ordered item, e.g. ``Burrito - Large (2 modifications) - Special: no onions``."""
    full_description = label
    if description and description.strip():
        full_description += f" - {description}"
    count = len(modifications or {})
    if count:
        full_description += f" ({count} modification{'s' if count > 1 else ''})"
    if special_request and special_request.strip():
        full_description += f" - Special: {special_request}"
    return full_description


def _parse_order_item(item: Dict[str, Any]) -> MenuItem:
    raw_modifications = item.get('modifications')
    modifications = {}
    if isinstance(raw_modifications, dict):
        modifications = {key: values for key, values in raw_modifications.items() if isinstance(values, list)}

    label = item.get('label') or ''
    description = item.get('description') or ''
    special_request = item.get('specialRequest') or None
    return MenuItem(
        id=str(item['id']) if item.get('id') else None,
        label=label,
        description=description,
        quantity=item.get('quantity') or 1,
        price=item.get('price') or 0,
        modifications=modifications,
        special_request=special_request,
        full_description=build_full_description(label, description, modifications, special_request),
    )


def _order_date(delivery: Dict[str, Any], fallback: Optional[DateInput]) -> Optional[str]:
    # deliveryTime looks like '2025-09-23 12:15:00'
    for value in (delivery.get('deliveryTime'), fallback):
        if not value:
            continue
        try:
            return format_date_key(value)
        except ValueError:
            logger.debug("Ignoring unusable order date %r", value)
    return None


def extract_orders(
    page_data: Optional[Dict[str, Any]],
    order_date: Optional[DateInput] = None,
    user_id: Optional[str] = None,
) -> List[OrderRecord]:
    """Turn the orders listed on a delivery page into order records.

    Args:
        page_data: Decoded page props
        order_date: Date used when the delivery carries no ``deliveryTime``
        user_id: User the orders belong to when an order names none

    Returns:
        One record per order. Orders without a user are skipped.
    """
    if not isinstance(page_data, dict):
        return []
    props = page_data.get('props', page_data)
    delivery = props.get('delivery') if isinstance(props, dict) else None
    if not isinstance(delivery, dict) or not isinstance(delivery.get('orders'), list):
        return []

    restaurant_id = (delivery.get('restaurant') or {}).get('id')
    if not restaurant_id:
        logger.debug("Delivery %s has orders but no restaurant id", delivery.get('id'))
        return []

    date_key = _order_date(delivery, order_date)
    if date_key is None:
        logger.warning("No usable date for the orders of delivery %s", delivery.get('id'))
        return []

    records = []
    for order in delivery['orders']:
        if not isinstance(order, dict):
            continue
        order_user = order.get('userId') or user_id
        if not order_user:
            logger.debug("Skipping order %s without user", order.get('id'))
            continue
        items = [_parse_order_item(item) for item in order.get('items') or [] if isinstance(item, dict)]
        records.append(OrderRecord(
            user_id=str(order_user),
            restaurant_id=str(restaurant_id),
            order_date=date_key,
            order_id=str(order['id']) if order.get('id') else None,
            items=items,
        ))
    return records
