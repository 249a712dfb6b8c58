"""Tests for JSON processor."""

import sys
import json
from pathlib import Path
import pytest
from pydantic import ValidationError

# Add src to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

from lunchstats.models.tracking import ObservationStatus
from lunchstats.utils.json_processor import JSONProcessor


@pytest.mark.asyncio
async def test_load_observation_list(tmp_path):
    """Test loading a bare list of observations."""
    path = tmp_path / 'observations.json'
    path.write_text(json.dumps([
        {'restaurantId': 'r1', 'status': 'soldout', 'observedAt': '2024-03-15'},
        {'restaurantId': 'r2', 'observedAt': '2024-03-15'},
    ]), encoding='utf-8')

    observations, nav_path = await JSONProcessor().load_observations(str(path))

    assert nav_path is None
    assert [obs.restaurant_id for obs in observations] == ['r1', 'r2']
    assert observations[0].status == ObservationStatus.SOLD_OUT
    assert observations[1].status == ObservationStatus.AVAILABLE


@pytest.mark.asyncio
async def test_load_observations_with_path(tmp_path):
    """Test loading observations together with their page path."""
    path = tmp_path / 'page.json'
    path.write_text(json.dumps({
        'path': '/app/2024-03-15',
        'observations': [{'restaurantId': 'r1', 'observedAt': '2024-03-15'}],
    }), encoding='utf-8')

    observations, nav_path = await JSONProcessor().load_observations(str(path))

    assert nav_path == '/app/2024-03-15'
    assert len(observations) == 1


@pytest.mark.asyncio
async def test_load_observations_rejects_invalid_entries(tmp_path):
    """Test entries without a restaurant id fail validation."""
    path = tmp_path / 'bad.json'
    path.write_text(json.dumps([{'status': 'soldout'}]), encoding='utf-8')

    with pytest.raises(ValidationError):
        await JSONProcessor().load_observations(str(path))


@pytest.mark.asyncio
async def test_load_missing_file(tmp_path):
    """Test missing files raise FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        await JSONProcessor().load_json(str(tmp_path / 'missing.json'))
    with pytest.raises(FileNotFoundError):
        await JSONProcessor().load_text(str(tmp_path / 'missing.html'))


@pytest.mark.asyncio
async def test_load_invalid_json(tmp_path):
    """Test malformed JSON raises ValueError."""
    path = tmp_path / 'broken.json'
    path.write_text('{not json', encoding='utf-8')

    with pytest.raises(ValueError):
        await JSONProcessor().load_json(str(path))


@pytest.mark.asyncio
async def test_save_json_creates_directories(tmp_path):
    """Test saved files can be loaded back as observations."""
    processor = JSONProcessor()
    output = tmp_path / 'out' / 'observations.json'

    saved = await processor.save_json({
        'path': '/app/2024-03-15/abc',
        'observations': [{'restaurantId': 'r1', 'status': 'order_placed', 'observedAt': '2024-03-15'}],
    }, str(output))

    assert saved == str(output)
    observations, nav_path = await processor.load_observations(saved)
    assert nav_path == '/app/2024-03-15/abc'
    assert observations[0].status == ObservationStatus.ORDER_PLACED
