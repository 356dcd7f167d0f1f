# mock_exam/core/database.py
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import config
from .models import TestRecord

logger = logging.getLogger(__name__)

class HistoryRepository:
    """Storage capability for completed test records"""

    def load(self) -> List[TestRecord]:
        raise NotImplementedError

    def append(self, record: TestRecord) -> bool:
        raise NotImplementedError

class InMemoryHistoryRepository(HistoryRepository):
    """History kept for the lifetime of the process only"""

    def __init__(self, records: Optional[List[TestRecord]] = None):
        self.records: List[TestRecord] = list(records or [])

    def load(self) -> List[TestRecord]:
        return list(self.records)

    def append(self, record: TestRecord) -> bool:
        self.records.append(record)
        return True

class JsonFileHistoryRepository(HistoryRepository):
    """History stored under one key of a local JSON key-value file.

    The value is the JSON array of every record; it is rewritten as a whole
    on each append.
    """

    def __init__(self, path: Optional[Path] = None, storage_key: Optional[str] = None):
        self.path = Path(path or config.HISTORY_FILE)
        self.storage_key = storage_key or config.HISTORY_STORAGE_KEY
        self._records: Optional[List[Dict[str, Any]]] = None

    def _read_store(self) -> Dict[str, Any]:
        try:
            with self.path.open(encoding="utf-8") as f:
                store = json.load(f)
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"❌ Could not read history store {self.path}: {e}")
            return {}

        if not isinstance(store, dict):
            logger.error(f"❌ History store {self.path} is not a key-value object, ignoring it")
            return {}
        return store

    def load(self) -> List[TestRecord]:
        store = self._read_store()
        raw_records = store.get(self.storage_key) or []
        if isinstance(raw_records, str):
            try:
                raw_records = json.loads(raw_records)
            except json.JSONDecodeError as e:
                logger.error(f"❌ History entry {self.storage_key} in {self.path} is not valid JSON: {e}")
                raw_records = []
        if not isinstance(raw_records, list):
            logger.error(f"❌ History entry {self.storage_key} in {self.path} is not a list, ignoring it")
            raw_records = []

        records = []
        for raw in raw_records:
            try:
                records.append(TestRecord.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed history record: {e}")

        self._records = [record.to_dict() for record in records]
        logger.info(f"📂 Loaded {len(records)} test records from {self.path}")
        return records

    def append(self, record: TestRecord) -> bool:
        if self._records is None:
            self.load()

        updated = self._records + [record.to_dict()]
        store = self._read_store()
        store[self.storage_key] = updated

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".history-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(store, f, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error(f"❌ Could not save test history to {self.path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False

        self._records = updated
        logger.info(f"💾 Test record {record.id} saved ({len(updated)} total)")
        return True

# Singleton pattern for history repository
_history_repository = None

def get_history_repository() -> HistoryRepository:
    """Get history repository instance (singleton)"""
    global _history_repository
    if _history_repository is None:
        _history_repository = JsonFileHistoryRepository()
    return _history_repository
