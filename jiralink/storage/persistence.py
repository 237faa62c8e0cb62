"""
Association-keyed persistence.

Records are plain dicts tagged with one or more associations, the way the
chat platform's app engine stores app data. A record is found by the set
of associations it carries, e.g. ``[misc:auth]`` for the credential or
``[room:<id>, misc:projects]`` for a room's connections.
"""

import json
import os
import tempfile
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from loguru import logger

from jiralink.config.settings import settings


class AssociationModel(str, Enum):
    MISC = "misc"
    ROOM = "room"
    USER = "user"


@dataclass(frozen=True)
class Association:
    """A tag attached to a persisted record."""

    model: AssociationModel
    id: str

    @property
    def key(self) -> str:
        return f"{self.model.value}:{self.id}"

    @classmethod
    def misc(cls, id: str) -> "Association":
        return cls(AssociationModel.MISC, id)

    @classmethod
    def room(cls, id: str) -> "Association":
        return cls(AssociationModel.ROOM, id)


def _keys(associations: Iterable[Association]) -> set:
    return {a.key for a in associations}


class PersistenceBackend(ABC):
    """Storage contract shared by all backends."""

    @abstractmethod
    def create_with_associations(self, record: dict, associations: List[Association]) -> str:
        """Store a record tagged with the given associations and return its id."""

    @abstractmethod
    def read_by_associations(self, associations: List[Association]) -> List[dict]:
        """Return copies of every record carrying all the given associations."""

    @abstractmethod
    def remove_by_associations(self, associations: List[Association]) -> List[dict]:
        """Remove every record carrying all the given associations and return them."""

    def read_by_association(self, association: Association) -> List[dict]:
        return self.read_by_associations([association])

    def remove_by_association(self, association: Association) -> List[dict]:
        return self.remove_by_associations([association])


class InMemoryBackend(PersistenceBackend):
    """Thread-safe in-process backend."""

    def __init__(self):
        self._records: Dict[str, dict] = {}
        self._lock = threading.RLock()

    def create_with_associations(self, record: dict, associations: List[Association]) -> str:
        record_id = uuid.uuid4().hex
        with self._lock:
            self._records[record_id] = {
                "associations": sorted(_keys(associations)),
                "data": json.loads(json.dumps(record, default=str)),
            }
        return record_id

    def read_by_associations(self, associations: List[Association]) -> List[dict]:
        wanted = _keys(associations)
        with self._lock:
            return [
                json.loads(json.dumps(entry["data"]))
                for entry in self._records.values()
                if wanted.issubset(entry["associations"])
            ]

    def remove_by_associations(self, associations: List[Association]) -> List[dict]:
        wanted = _keys(associations)
        with self._lock:
            matched = [
                record_id
                for record_id, entry in self._records.items()
                if wanted.issubset(entry["associations"])
            ]
            return [self._records.pop(record_id)["data"] for record_id in matched]


class JsonFileBackend(PersistenceBackend):
    """
    Backend that keeps every record in a single JSON file.

    The file is rewritten through a temporary file and ``os.replace`` so a
    reader never sees a half-written document.
    """

    def __init__(self, storage_path: Optional[str] = None):
        """
        Initialize the file backend.

        Args:
            storage_path: Path to JSON storage file. Defaults to settings.storage_path
        """
        self.storage_path = storage_path or settings.storage_path
        self._lock = threading.RLock()
        self._ensure_storage_exists()

    def _ensure_storage_exists(self):
        """Ensure the storage file exists."""
        path = Path(self.storage_path)
        if not path.exists() or path.stat().st_size == 0:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._save_data({})
            logger.info(f"Created storage at {self.storage_path}")

    def _load_data(self) -> Dict[str, dict]:
        """Load all records from storage."""
        try:
            with open(self.storage_path, 'r', encoding='utf-8') as f:
                return json.load(f).get("records", {})
        except (json.JSONDecodeError, FileNotFoundError) as e:
            logger.warning(f"Failed to load storage: {e}. Returning empty dict.")
            return {}

    def _save_data(self, records: Dict[str, dict]):
        """Save all records to storage."""
        directory = os.path.dirname(os.path.abspath(self.storage_path))
        fd, temp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump({"records": records}, f, indent=2, default=str)
            os.replace(temp_path, self.storage_path)
        except Exception as e:
            logger.error(f"Failed to save storage: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    def create_with_associations(self, record: dict, associations: List[Association]) -> str:
        record_id = uuid.uuid4().hex
        with self._lock:
            records = self._load_data()
            records[record_id] = {
                "associations": sorted(_keys(associations)),
                "data": record,
            }
            self._save_data(records)
        return record_id

    def read_by_associations(self, associations: List[Association]) -> List[dict]:
        wanted = _keys(associations)
        with self._lock:
            records = self._load_data()
        return [
            entry["data"]
            for entry in records.values()
            if wanted.issubset(entry.get("associations", []))
        ]

    def remove_by_associations(self, associations: List[Association]) -> List[dict]:
        wanted = _keys(associations)
        with self._lock:
            records = self._load_data()
            matched = [
                record_id
                for record_id, entry in records.items()
                if wanted.issubset(entry.get("associations", []))
            ]
            removed = [records.pop(record_id)["data"] for record_id in matched]
            if removed:
                self._save_data(records)
        return removed
