"""Tests for navigation path classification."""

import sys
from pathlib import Path
from datetime import date
import pytest

# Add src to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

from lunchstats.models.tracking import UrlContextKind
from lunchstats.utils.url_context import extract_url_context


def test_delivery_page():
    """Test /app/{date}/{id} is a delivery detail page."""
    context = extract_url_context('/app/2024-03-15/abc123')

    assert context.date == '2024-03-15'
    assert context.delivery_id == 'abc123'
    assert context.is_day_page is False
    assert context.kind == UrlContextKind.DELIVERY


def test_day_page():
    """Test /app/{date} is a day page."""
    context = extract_url_context('/app/2024-03-15')

    assert context.date == '2024-03-15'
    assert context.delivery_id is None
    assert context.is_day_page is True
    assert context.kind == UrlContextKind.DAY


def test_app_root_defaults_to_today():
    """Test the bare app root is today's day page."""
    context = extract_url_context('/app', today='2024-03-15')

    assert context.date == '2024-03-15'
    assert context.delivery_id is None
    assert context.is_day_page is True
    assert context.kind == UrlContextKind.TODAY


def test_app_root_accepts_date_for_today():
    """Test the app root takes a date object as today."""
    context = extract_url_context('/app/', today=date(2024, 3, 15))
    assert context.date == '2024-03-15'


def test_app_root_uses_current_date():
    """Test the app root defaults to the current date."""
    context = extract_url_context('/app')
    assert context.date == date.today().isoformat()


@pytest.mark.parametrize('path', ['/', '', '/orders/2024-03-15/abc', '/apps/2024-03-15', '/login'])
def test_foreign_paths_have_no_context(path):
    """Test paths outside the app root give an empty context."""
    context = extract_url_context(path)

    assert context.date is None
    assert context.delivery_id is None
    assert context.is_day_page is False
    assert context.kind == UrlContextKind.UNRECOGNIZED


def test_three_segments_with_bad_date_keeps_delivery_id():
    """Test a bad date segment keeps the delivery id."""
    context = extract_url_context('/app/settings/abc123')

    assert context.date is None
    assert context.delivery_id == 'abc123'
    assert context.is_day_page is False


def test_impossible_calendar_date_is_not_a_date():
    """Test an impossible date is not a date."""
    context = extract_url_context('/app/2024-02-30')

    assert context.date is None
    assert context.is_day_page is False


def test_deeper_paths_are_unrecognized():
    """Test paths below a delivery page give no context."""
    context = extract_url_context('/app/2024-03-15/abc123/extra')

    assert context.date is None
    assert context.delivery_id is None
    assert context.is_day_page is False


def test_full_url_uses_path():
    """Test a full URL is reduced to its path."""
    context = extract_url_context('https://lunch.example.com/app/2024-03-15/abc123?tab=menu')

    assert context.date == '2024-03-15'
    assert context.delivery_id == 'abc123'


@pytest.mark.parametrize('value', [None, 42, ['app']])
def test_unparseable_input_never_raises(value):
    """Test bad input is recovered to the parse-error context."""
    context = extract_url_context(value)

    assert context.date is None
    assert context.delivery_id is None
    assert context.is_day_page is False
    assert context.kind == UrlContextKind.PARSE_ERROR
    assert context.has_temporal_anchor is False
