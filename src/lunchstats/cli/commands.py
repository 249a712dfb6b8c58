"""Command-line interface commands."""

import asyncio
import json
import traceback
from typing import Optional

import click

from ..api.client import ApiClient
from ..api.errors import LunchStatsError
from ..config import app_config
from ..logging_config import setup_logging
from ..models.order import RatingRecord
from ..repositories.order_repository import OrderRepository
from ..repositories.rating_repository import RatingRepository
from ..repositories.restaurant_repository import RestaurantRepository
from ..services.stats_service import StatsService
from ..services.tracking_service import TrackingService
from ..utils.date_utils import format_date_string
from ..utils.json_processor import JSONProcessor
from ..utils.page_parser import extract_observations, parse_page_data
from ..utils.rating_utils import get_all_rating_emojis, get_rating_emoji
from ..utils.url_context import extract_url_context


def _fail(message: str, show_traceback: bool = False) -> None:
    click.echo(f"❌ {message}")
    if show_traceback and app_config.debug:
        click.echo(traceback.format_exc())
    raise SystemExit(1)


def _user_id(user: Optional[str]) -> str:
    user_id = user or app_config.user_id
    if not user_id:
        _fail("No user id given. Pass --user or set LUNCHSTATS_USER_ID.")
    return user_id


@click.group()
@click.option('--log-level', type=str, default=None, help='Override LOG_LEVEL')
def main(log_level: Optional[str]):
    """Lunch stats CLI - restaurant appearance tracking and order ratings."""
    setup_logging(log_level)


@main.command('parse-url')
@click.argument('path')
@click.option('--today', type=str, default=None, help='Date to use for the bare app root (YYYY-MM-DD)')
def parse_url(path: str, today: Optional[str]):
    """Show the delivery date and page kind of a navigation path."""
    context = extract_url_context(path, today=today)
    click.echo(json.dumps(context.model_dump(by_alias=True, mode='json'), indent=2))


@main.command('track')
@click.argument('json_file_path')
@click.option('--path', 'nav_path', type=str, default=None, help='Navigation path the observations came from')
def track(json_file_path: str, nav_path: Optional[str]):
    """Sync scrape observations from a JSON file to the remote history."""
    asyncio.run(_track(json_file_path, nav_path))


async def _track(json_file_path: str, nav_path: Optional[str]):
    """Sync scrape observations."""
    processor = JSONProcessor()
    try:
        observations, file_path = await processor.load_observations(json_file_path)
    except (OSError, ValueError) as e:
        _fail(f"Error loading observations: {e}")

    nav_path = nav_path or file_path
    url_context = extract_url_context(nav_path) if nav_path else None

    click.echo(f"🔍 Reconciling {len(observations)} observation(s)...")
    async with ApiClient() as client:
        service = TrackingService(RestaurantRepository(client))
        result = await service.reconcile(observations, url_context=url_context)

    _report(result)


@main.command('track-page')
@click.argument('page_file_path')
@click.option('--path', 'nav_path', type=str, required=True, help='Navigation path of the saved page')
@click.option('--user', type=str, default=None, help='Owner of orders that do not name their user')
def track_page(page_file_path: str, nav_path: str, user: Optional[str]):
    """Scrape a saved page (HTML or page JSON) and sync what it shows."""
    asyncio.run(_track_page(page_file_path, nav_path, user or app_config.user_id))


async def _track_page(page_file_path: str, nav_path: str, user_id: Optional[str]):
    """Scrape and sync a saved page."""
    processor = JSONProcessor()
    try:
        if page_file_path.endswith('.json'):
            page = await processor.load_json(page_file_path)
        else:
            page = await processor.load_text(page_file_path)
    except (OSError, ValueError) as e:
        _fail(f"Error loading page: {e}")

    async with ApiClient() as client:
        service = TrackingService(RestaurantRepository(client), order_repository=OrderRepository(client))
        result = await service.track_page(page, nav_path, user_id=user_id)

    _report(result)


@main.command()
@click.argument('page_file_path')
@click.option('--path', 'nav_path', type=str, required=True, help='Navigation path of the saved page')
@click.option('--output', type=str, default='observations.json', help='Where to write the observations')
def scrape(page_file_path: str, nav_path: str, output: str):
    """Extract observations from a saved page without syncing them."""
    asyncio.run(_scrape(page_file_path, nav_path, output))


async def _scrape(page_file_path: str, nav_path: str, output: str):
    """Write the observations of a saved page to a JSON file."""
    url_context = extract_url_context(nav_path)
    if not url_context.has_temporal_anchor:
        _fail(f"No delivery date in {nav_path}")

    processor = JSONProcessor()
    try:
        html = await processor.load_text(page_file_path)
    except OSError as e:
        _fail(f"Error loading page: {e}")

    observations = extract_observations(parse_page_data(html), url_context.date)
    await processor.save_json({
        'path': nav_path,
        'observations': [obs.model_dump(by_alias=True, mode='json') for obs in observations],
    }, output)
    click.echo(f"✅ Wrote {len(observations)} observation(s) to {output}")


def _report(result) -> None:
    if result.dropped:
        click.echo(f"⚠️  Dropped {result.dropped} observation(s) without a delivery date")
    for update in result.submitted:
        click.echo(f"✅ {update.restaurant_id}: +{len(update.appearance_dates_to_add)} appearance(s), "
                   f"+{len(update.soldout_dates_to_add)} sold out")
    for restaurant_id in result.skipped:
        click.echo(f"➖ {restaurant_id}: already up to date")
    for restaurant_id in result.menus_recorded:
        click.echo(f"📋 {restaurant_id}: menu stored")
    for restaurant_id in result.orders_recorded:
        click.echo(f"🧾 {restaurant_id}: order recorded")
    for restaurant_id, reason in result.failures.items():
        click.echo(f"⚠️  {restaurant_id}: {reason}")
    click.echo(f"📊 {len(result.submitted)} submitted, {len(result.skipped)} unchanged, "
               f"{len(result.failures)} failed")


@main.command()
@click.argument('restaurant_id')
@click.option('--user', type=str, default=None, help='User id for order history')
def stats(restaurant_id: str, user: Optional[str]):
    """Show appearance, sold-out and order stats for a restaurant."""
    asyncio.run(_stats(restaurant_id, user or app_config.user_id))


async def _stats(restaurant_id: str, user_id: Optional[str]):
    """Show restaurant stats."""
    try:
        async with ApiClient() as client:
            view = await StatsService(RestaurantRepository(client)).get_restaurant_view(restaurant_id, user_id)
    except LunchStatsError as e:
        _fail(f"Error getting stats: {e}", show_traceback=True)

    click.echo(f"🍽️  {view.name or view.restaurant_id}")
    click.echo(f"   Appearances: {view.appearance_count}")
    click.echo(f"   Sold Out: {view.soldout_count} ({view.soldout_rate * 100:.1f}%)")
    click.echo(f"   First Seen: {format_date_string(view.first_seen)}")
    click.echo(f"   Last Seen: {format_date_string(view.last_appearance)}")
    if view.sold_out_last_time:
        click.echo("   🔥 Sold Out Last Time")
    click.echo(f"   Rating: {view.rating_summary}")
    history = view.user_order_history
    if history is not None:
        click.echo(f"   Your Orders: {history.total_orders} (last {view.last_order_display})")
        if history.last_item_purchased:
            click.echo(f"   Last Item: {history.last_item_purchased}")


@main.command()
@click.argument('restaurant_id')
@click.argument('order_date')
@click.argument('rating', type=click.IntRange(1, 4))
@click.option('--user', type=str, default=None, help='User id')
@click.option('--comment', type=str, default='', help='Optional comment')
def rate(restaurant_id: str, order_date: str, rating: int, user: Optional[str], comment: str):
    """Rate an order from 1 (never again) to 4 (life changing)."""
    asyncio.run(_rate(restaurant_id, order_date, rating, _user_id(user), comment))


async def _rate(restaurant_id: str, order_date: str, rating: int, user_id: str, comment: str):
    """Submit a rating."""
    try:
        record = RatingRecord(
            user_id=user_id,
            restaurant_id=restaurant_id,
            order_date=order_date,
            rating=rating,
            comment=comment,
        )
    except ValueError as e:
        _fail(f"Invalid rating: {e}")

    try:
        async with ApiClient() as client:
            await RatingRepository(client).submit_rating(record)
    except LunchStatsError as e:
        _fail(f"Could not submit rating, please try again: {e}", show_traceback=True)

    click.echo(f"✅ Rated {restaurant_id} on {format_date_string(order_date)}: {get_rating_emoji(rating)}")


@main.command('get-rating')
@click.argument('restaurant_id')
@click.argument('order_date')
@click.option('--user', type=str, default=None, help='User id')
def get_rating(restaurant_id: str, order_date: str, user: Optional[str]):
    """Show the rating of an order."""
    asyncio.run(_get_rating(restaurant_id, order_date, _user_id(user)))


async def _get_rating(restaurant_id: str, order_date: str, user_id: str):
    """Show an order rating."""
    try:
        async with ApiClient() as client:
            rating = await RatingRepository(client).get_order_rating(user_id, restaurant_id, order_date)
    except (LunchStatsError, ValueError) as e:
        _fail(f"Error getting rating: {e}")

    if not rating:
        click.echo("📭 Not rated yet")
        return
    value = rating.get('rating') if isinstance(rating, dict) else rating
    click.echo(f"{get_rating_emoji(value)} {value}")


@main.command()
@click.option('--user', type=str, default=None, help='User id')
def summary(user: Optional[str]):
    """List the restaurants a user has ordered from."""
    asyncio.run(_summary(_user_id(user)))


async def _summary(user_id: str):
    """Show the user's restaurant summary."""
    try:
        async with ApiClient() as client:
            data = await OrderRepository(client).get_user_restaurant_summary(user_id)
    except LunchStatsError as e:
        _fail(f"Error getting order summary: {e}")

    restaurants = data.get('restaurants') or []
    if not restaurants:
        click.echo("📭 No orders found")
        return

    for i, restaurant in enumerate(restaurants, 1):
        name = restaurant.get('restaurantName') or restaurant.get('restaurantId')
        click.echo(f"{i}. {name}")
        click.echo(f"   🧾 Orders: {restaurant.get('totalOrders', 0)}")
        click.echo(f"   📅 Last Order: {format_date_string(restaurant.get('lastOrderDate'))}")


@main.command('update-order')
@click.argument('restaurant_id')
@click.argument('order_date')
@click.argument('items', nargs=-1, required=True)
@click.option('--user', type=str, default=None, help='User id')
def update_order(restaurant_id: str, order_date: str, items, user: Optional[str]):
    """Replace the items of an order."""
    asyncio.run(_update_order(restaurant_id, order_date, list(items), _user_id(user)))


async def _update_order(restaurant_id: str, order_date: str, items, user_id: str):
    """Replace order items."""
    try:
        async with ApiClient() as client:
            await OrderRepository(client).update_user_order(user_id, restaurant_id, order_date, items)
    except (LunchStatsError, ValueError) as e:
        _fail(f"Could not update order, please try again: {e}")

    click.echo(f"✅ Updated order from {restaurant_id} on {format_date_string(order_date)} ({len(items)} item(s))")


@main.command('delete-order')
@click.argument('restaurant_id')
@click.argument('order_date')
@click.option('--user', type=str, default=None, help='User id')
def delete_order(restaurant_id: str, order_date: str, user: Optional[str]):
    """Delete an order from the user's history."""
    asyncio.run(_delete_order(restaurant_id, order_date, _user_id(user)))


async def _delete_order(restaurant_id: str, order_date: str, user_id: str):
    """Delete an order."""
    try:
        async with ApiClient() as client:
            await OrderRepository(client).delete_user_restaurant_history(user_id, restaurant_id, order_date)
    except (LunchStatsError, ValueError) as e:
        _fail(f"Could not delete order, please try again: {e}")

    click.echo(f"🗑️  Deleted order from {restaurant_id} on {format_date_string(order_date)}")


@main.command()
def emojis():
    """Show the rating scale."""
    for option in get_all_rating_emojis():
        click.echo(f"{option.rating}. {option.emoji} {option.title}")
