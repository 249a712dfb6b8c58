"""Tests for CLI commands."""

import sys
import json
from pathlib import Path
import httpx
import pytest
from click.testing import CliRunner

# Add src to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

from lunchstats.api.client import ApiClient
from lunchstats.cli import commands


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.setattr(commands, 'setup_logging', lambda level=None: None)
    return CliRunner()


def test_parse_url(runner):
    """Test parse-url prints the context as JSON."""
    result = runner.invoke(commands.main, ['parse-url', '/app/2024-03-15/abc123'])

    assert result.exit_code == 0
    assert json.loads(result.output) == {
        'date': '2024-03-15',
        'deliveryId': 'abc123',
        'isDayPage': False,
        'kind': 'delivery',
    }


def test_parse_url_today(runner):
    """Test parse-url resolves the app root with --today."""
    result = runner.invoke(commands.main, ['parse-url', '/app', '--today', '2024-03-15'])

    assert result.exit_code == 0
    assert json.loads(result.output)['date'] == '2024-03-15'


def test_emojis(runner):
    """Test the rating scale is listed."""
    result = runner.invoke(commands.main, ['emojis'])

    assert result.exit_code == 0
    assert '1. 🤮 Never Again' in result.output
    assert '4. 🤯 Life Changing' in result.output


def test_rate_rejects_out_of_range(runner):
    """Test ratings outside 1-4 are refused."""
    result = runner.invoke(commands.main, ['rate', 'r1', '2024-03-15', '5', '--user', 'u1'])
    assert result.exit_code != 0


def test_scrape_writes_observations(runner, tmp_path):
    """Test scrape writes the page observations to a file."""
    page_data = {'props': {'delivery': {'id': 'd1', 'restaurant': {'id': 'tacos', 'name': 'Tacos'},
                                        'numSlotsAvailable': 3}}}
    page = tmp_path / 'page.html'
    page.write_text(f"<div id='app' data-page='{json.dumps(page_data)}'></div>", encoding='utf-8')
    output = tmp_path / 'observations.json'

    result = runner.invoke(commands.main, [
        'scrape', str(page), '--path', '/app/2024-03-15/d1', '--output', str(output),
    ])

    assert result.exit_code == 0
    saved = json.loads(output.read_text(encoding='utf-8'))
    assert saved['path'] == '/app/2024-03-15/d1'
    assert saved['observations'][0]['restaurantId'] == 'tacos'
    assert saved['observations'][0]['observedAt'] == '2024-03-15'
    assert saved['observations'][0]['status'] == 'available'


def test_scrape_needs_a_delivery_date(runner, tmp_path):
    """Test scrape refuses a path without a delivery date."""
    page = tmp_path / 'page.html'
    page.write_text('<div id="app"></div>', encoding='utf-8')

    result = runner.invoke(commands.main, ['scrape', str(page), '--path', '/login'])

    assert result.exit_code == 1
    assert 'No delivery date' in result.output


def test_track_page_records_menu_and_order(runner, monkeypatch, tmp_path):
    """Test track-page syncs the appearance, menu and order of a saved delivery page."""
    requests = []

    def handler(request):
        requests.append(request)
        if request.method == 'GET':
            return httpx.Response(404, json={'error': 'Restaurant not found'})
        return httpx.Response(200, json={'success': True})

    monkeypatch.setattr(commands, 'ApiClient', lambda: ApiClient(
        base_url='http://api.test', transport=httpx.MockTransport(handler), retry_attempts=1, retry_delay=0,
    ))
    page = tmp_path / 'page.json'
    page.write_text(json.dumps({'props': {'delivery': {
        'id': 'd1',
        'restaurant': {'id': 'tacos', 'name': 'Tacos'},
        'numSlotsAvailable': 3,
        'menu': {'sections': [{'label': 'Mains', 'items': ['i1']}], 'items': [{'id': 'i1', 'label': 'Burrito'}]},
        'orders': [{'id': 'o1', 'items': [{'label': 'Burrito', 'quantity': 1}]}],
    }}}), encoding='utf-8')

    result = runner.invoke(commands.main, ['track-page', str(page), '--path', '/app/2024-03-15/d1', '--user', 'u1'])

    assert result.exit_code == 0, result.output
    assert '📋 tacos: menu stored' in result.output
    assert '🧾 tacos: order recorded' in result.output
    sent = {(request.method, request.url.path): request for request in requests}
    assert ('POST', '/api/restaurants/update-appearances') in sent
    assert json.loads(sent[('POST', '/api/restaurants/appearances/track')].content)['date'] == '2024-03-15'
    order = json.loads(sent[('PUT', '/api/orders/2024-03-15')].content)
    assert (order['userId'], order['restaurantId']) == ('u1', 'tacos')
