import json
import logging
from typing import Any, Dict, Iterable, Optional, Set
from pathlib import Path

logger = logging.getLogger(__name__)


def load_json_data(json_file: Path) -> Dict[str, Any]:
    """Loads a JSON object from disk.

    Args:
        json_file (Path): Path to the JSON file.

    Returns:
        Dict[str, Any]: The stored object, or an empty dict when the file is
        missing, unreadable or does not hold a JSON object.
    """
    try:
        with json_file.open("r", encoding="utf-8") as file:
            data = json.load(file)
    except FileNotFoundError:
        logger.info("JSON file not found: %s. Starting with an empty store.", json_file)
        return {}
    except json.JSONDecodeError as err:
        logger.warning("Error decoding JSON data in %s: %s. Starting with an empty store.", json_file, err)
        return {}
    except OSError as err:
        logger.error("File system error while reading %s: %s. Starting with an empty store.", json_file, err)
        return {}

    if not isinstance(data, dict):
        logger.warning("Unexpected JSON structure in %s (expected an object). Starting with an empty store.", json_file)
        return {}
    return data


def save_json_data(data: Dict[str, Any], json_file: Path) -> bool:
    """Writes a JSON object to disk.

    Args:
        data (Dict[str, Any]): The object to save.
        json_file (Path): Path to the JSON file.

    Returns:
        bool: True when the file was written.
    """
    tmp_file = json_file.with_name(json_file.name + ".tmp")
    try:
        json_file.parent.mkdir(parents=True, exist_ok=True)
        with tmp_file.open("w", encoding="utf-8") as file:
            json.dump(data, file, indent=4, sort_keys=True)
        tmp_file.replace(json_file)
        return True
    except (OSError, TypeError, ValueError) as err:
        logger.error("Error while saving JSON data to %s: %s", json_file, err)
        return False


class JsonFileStore:
    """Key-value store persisted as a single JSON object.

    Every mutation rewrites the file. A write failure is logged and the
    in-memory copy keeps the change, so the process keeps working without
    durability until the disk recovers. While unsaved changes are pending,
    ``reload`` keeps the in-memory copy instead of reading the stale file.
    """

    def __init__(self, json_file: Path):
        self.json_file = Path(json_file)
        self._data: Dict[str, Any] = load_json_data(self.json_file)
        self.dirty = False

    def _save(self) -> None:
        self.dirty = not save_json_data(self._data, self.json_file)

    def reload(self) -> None:
        if self.dirty:
            # retry the pending write; the file on disk is older than memory
            self._save()
            return
        self._data = load_json_data(self.json_file)

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def update(self, values: Dict[str, Any], removed: Iterable[str] = ()) -> None:
        """Applies several puts and deletes with a single write."""
        self._data.update(values)
        for key in removed:
            self._data.pop(key, None)
        self._save()

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._save()

    def list_keys(self) -> Set[str]:
        return set(self._data)
