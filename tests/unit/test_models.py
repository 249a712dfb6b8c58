"""Tests for lunchstats models."""

import sys
from pathlib import Path
from datetime import date
import pytest
from pydantic import ValidationError

# Add src to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

from lunchstats.api.errors import PartialReconciliationFailure
from lunchstats.models import (
    MenuItem,
    ObservationStatus,
    OrderRecord,
    RatingRecord,
    RatingStats,
    ReconciliationResult,
    RestaurantAppearanceHistory,
    RestaurantStats,
    ScrapeObservation,
    TrackingUpdate,
)


def test_scrape_observation_from_wire():
    """Test observations accept camelCase keys."""
    observation = ScrapeObservation.model_validate({
        'restaurantId': 'r1',
        'restaurantName': 'Taco Spot',
        'status': 'soldout',
        'observedAt': '2024-03-15',
    })

    assert observation.restaurant_id == 'r1'
    assert observation.status == ObservationStatus.SOLD_OUT
    assert observation.status.counts_as_soldout
    assert observation.image_url is None


@pytest.mark.parametrize('restaurant_id', ['', '  ', '\t'])
def test_scrape_observation_requires_restaurant_id(restaurant_id):
    """Test empty and blank restaurant ids are rejected."""
    with pytest.raises(ValidationError):
        ScrapeObservation(restaurant_id=restaurant_id, observed_at='2024-03-15')


def test_scrape_observation_strips_restaurant_id():
    """Test surrounding whitespace is removed from the restaurant id."""
    assert ScrapeObservation(restaurant_id=' r1 ', observed_at='2024-03-15').restaurant_id == 'r1'


@pytest.mark.parametrize('status', [
    ObservationStatus.AVAILABLE,
    ObservationStatus.ORDERING_CLOSED,
    ObservationStatus.ORDER_PLACED,
])
def test_only_soldout_counts_as_soldout(status):
    """Test only the sold-out status adds sold-out dates."""
    assert not status.counts_as_soldout


def test_tracking_update_normalizes_dates():
    """Test update date lists are unique, sorted keys."""
    update = TrackingUpdate(
        restaurant_id='r1',
        appearance_dates_to_add=['2024-03-16', date(2024, 3, 15), '2024-03-16'],
        soldout_dates_to_add=['2024-03-15T09:00:00'],
    )

    assert update.appearance_dates_to_add == ['2024-03-15', '2024-03-16']
    assert update.soldout_dates_to_add == ['2024-03-15']
    assert not update.is_empty
    assert update.to_payload() == {
        'restaurantId': 'r1',
        'appearanceDatesToAdd': ['2024-03-15', '2024-03-16'],
        'soldoutDatesToAdd': ['2024-03-15'],
    }


def test_tracking_update_rejects_bad_dates():
    """Test an unreadable date fails validation."""
    with pytest.raises(ValidationError):
        TrackingUpdate(restaurant_id='r1', appearance_dates_to_add=['someday'])


def test_empty_tracking_update():
    """Test an update without dates is empty."""
    assert TrackingUpdate(restaurant_id='r1').is_empty


def test_history_from_dates_keeps_soldouts_within_appearances():
    """Test sold-out dates outside the appearances are dropped."""
    history = RestaurantAppearanceHistory.from_dates(
        'r1',
        ['2024-03-15', '2024-03-14', '2024-03-15', 'bad'],
        ['2024-03-15', '2024-03-20'],
    )

    assert history.appearance_dates == ['2024-03-14', '2024-03-15']
    assert history.soldout_dates == ['2024-03-15']
    assert history.is_consistent
    assert history.soldout_rate == 0.5


def test_history_from_api_payload():
    """Test both remote field spellings are understood."""
    history = RestaurantAppearanceHistory.from_api('r1', {
        'name': 'r1',
        'appearances': ['2024-03-14', '2024-03-15'],
        'soldOutDates': ['2024-03-14'],
    })

    assert history.name is None
    assert history.has_appearance('2024-03-15')
    assert history.has_soldout('2024-03-14')
    assert not history.has_soldout('2024-03-15')

    history = RestaurantAppearanceHistory.from_api('r2', {
        'name': 'Taco Spot',
        'appearanceDates': ['2024-03-15'],
        'soldoutDates': ['2024-03-15'],
    })
    assert history.name == 'Taco Spot'
    assert history.soldout_dates == ['2024-03-15']

    assert RestaurantAppearanceHistory.from_api('r3', None).appearance_dates == []


def test_history_apply_merges_update():
    """Test applying an update returns a merged copy."""
    history = RestaurantAppearanceHistory.from_dates('r1', ['2024-03-14'], [])
    update = TrackingUpdate(
        restaurant_id='r1',
        appearance_dates_to_add=['2024-03-15'],
        soldout_dates_to_add=['2024-03-15'],
    )

    merged = history.apply(update)

    assert merged.appearance_dates == ['2024-03-14', '2024-03-15']
    assert merged.soldout_dates == ['2024-03-15']
    assert history.appearance_dates == ['2024-03-14']


def test_reconciliation_result_failures():
    """Test failures can be raised as one error."""
    result = ReconciliationResult(
        submitted=[TrackingUpdate(restaurant_id='r1', appearance_dates_to_add=['2024-03-15'])],
        failures={'r2': 'HTTP 500'},
    )

    assert result.succeeded == ['r1']
    assert result.has_failures

    with pytest.raises(PartialReconciliationFailure) as exc_info:
        result.raise_for_failures()
    assert exc_info.value.per_restaurant_errors == {'r2': 'HTTP 500'}
    assert exc_info.value.succeeded == ['r1']

    ReconciliationResult().raise_for_failures()


def test_menu_item_from_string_and_name():
    """Test items are read from plain strings and the name key."""
    assert MenuItem.model_validate('Burrito').label == 'Burrito'
    item = MenuItem.model_validate({'name': 'Bowl', 'quantity': 2})
    assert item.label == 'Bowl'
    assert item.quantity == 2
    assert item.full_description == 'Bowl'
    assert str(item) == 'Bowl'
    assert MenuItem(label='  Taco ').normalized_label == 'taco'


def test_order_record_normalizes_date():
    """Test the order date is normalized to a key."""
    order = OrderRecord(user_id='u1', restaurant_id='r1', order_date=date(2024, 3, 15), items=['Burrito'])

    assert order.order_date == '2024-03-15'
    assert order.key == ('u1', 'r1', '2024-03-15')
    assert order.items[0].label == 'Burrito'


def test_rating_record_validation():
    """Test ratings are limited to 1-4 on a valid date."""
    record = RatingRecord(user_id='u1', restaurant_id='r1', order_date='2024-03-15', rating=4)
    assert record.to_payload() == {
        'userId': 'u1',
        'restaurantId': 'r1',
        'orderDate': '2024-03-15',
        'rating': 4,
        'comment': '',
    }

    with pytest.raises(ValidationError):
        RatingRecord(user_id='u1', restaurant_id='r1', order_date='2024-03-15', rating=5)
    with pytest.raises(ValidationError):
        RatingRecord(user_id='u1', restaurant_id='r1', order_date='2024-03-15', rating=0)
    with pytest.raises(ValidationError):
        RatingRecord(user_id='u1', restaurant_id='r1', order_date='03/15/2024', rating=3)


def test_rating_stats_add_rating():
    """Test ratings update the totals and distribution."""
    stats = RatingStats()
    stats.add_rating(4)
    stats.add_rating(2)

    assert stats.total_ratings == 2
    assert stats.average_rating == 3.0
    assert stats.distribution_percentages() == {1: 0.0, 2: 50.0, 3: 0.0, 4: 50.0}

    with pytest.raises(ValueError):
        stats.add_rating(5)


def test_restaurant_stats_from_wire():
    """Test restaurant stats are read from the wire shape."""
    stats = RestaurantStats.model_validate({
        'id': 'r1',
        'name': 'Taco Spot',
        'appearances': ['2024-03-14', '2024-03-15'],
        'soldOutDates': ['2024-03-15'],
        'totalAppearances': 2,
        'userOrderHistory': {
            'totalOrders': 1,
            'lastOrderDate': '2024-03-14',
            'lastOrderItems': [{'label': 'Burrito'}],
        },
    })

    assert stats.history.soldout_dates == ['2024-03-15']
    assert stats.user_order_history.total_orders == 1
    assert stats.user_order_history.last_item_purchased.label == 'Burrito'


def test_menu_item_order_fields_from_wire():
    """Test ordered item details are read from their wire names."""
    item = MenuItem.model_validate({
        'id': 'i1',
        'label': 'Burrito',
        'description': 'Large',
        'price': 12.5,
        'modifications': {'Salsa': ['Hot']},
        'specialRequest': 'no onions',
        'fullDescription': 'Burrito - Large (1 modification) - Special: no onions',
    })

    assert item.special_request == 'no onions'
    assert item.modifications == {'Salsa': ['Hot']}
    assert str(item) == 'Burrito - Large (1 modification) - Special: no onions'
    assert item.model_dump(by_alias=True, exclude_none=True)['specialRequest'] == 'no onions'
    assert 'section' not in item.model_dump(exclude_none=True)


def test_order_record_order_id():
    """Test the order id is optional and read from its wire name."""
    order = OrderRecord.model_validate({
        'userId': 'u1', 'restaurantId': 'r1', 'orderDate': '2024-03-15', 'orderId': 'o1',
    })

    assert order.order_id == 'o1'
    assert OrderRecord(user_id='u1', restaurant_id='r1', order_date='2024-03-15').order_id is None
