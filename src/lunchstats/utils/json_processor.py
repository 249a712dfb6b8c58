"""JSON processing utilities."""

import json
import os
from typing import Any, List, Optional, Tuple

import aiofiles
from pydantic import TypeAdapter

from ..models.tracking import ScrapeObservation

_observation_list = TypeAdapter(List[ScrapeObservation])


class JSONProcessor:
    """Loader for scrape observation files and saved page snapshots."""

    async def load_json(self, json_file_path: str) -> Any:
        """Load and decode a JSON file."""
        if not os.path.exists(json_file_path):
            raise FileNotFoundError(f"JSON file not found: {json_file_path}")

        async with aiofiles.open(json_file_path, 'r', encoding='utf-8') as file:
            content = await file.read()
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error loading JSON file {json_file_path}: {e}") from e

    async def load_observations(self, json_file_path: str) -> Tuple[List[ScrapeObservation], Optional[str]]:
        """Load scrape observations from a file.

        The file holds either a list of observations or an object
        ``{"path": "/app/2024-03-15", "observations": [...]}``.

        Returns:
            The validated observations and the navigation path, if the file names one
        """
        data = await self.load_json(json_file_path)

        path = None
        if isinstance(data, dict):
            path = data.get('path')
            data = data.get('observations', [])

        return _observation_list.validate_python(data), path

    async def load_text(self, file_path: str) -> str:
        """Load a saved page, e.g. an HTML snapshot."""
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"File not found: {file_path}")

        async with aiofiles.open(file_path, 'r', encoding='utf-8') as file:
            return await file.read()

    async def save_json(self, data: Any, output_path: str) -> str:
        """Write data as indented JSON, creating parent directories."""
        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        async with aiofiles.open(output_path, 'w', encoding='utf-8') as file:
            await file.write(json.dumps(data, indent=2, ensure_ascii=False))
        return output_path
