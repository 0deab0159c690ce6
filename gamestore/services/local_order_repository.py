"""JSON file store for orders placed while the backend is unreachable."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List


class LocalOrderRepository:
    """Append-only list of order records kept in a single JSON file."""

    def __init__(self, data_file: Path) -> None:
        self._data_file = Path(data_file)

    def list_orders(self) -> List[Dict]:
        return self._load()

    def add_order(self, record: Dict) -> Dict:
        data = self._load()
        data.append(record)
        self._write(data)
        return record

    def _load(self) -> List[Dict]:
        if not self._data_file.exists():
            return []
        text = self._data_file.read_text(encoding="utf-8")
        if not text.strip():
            return []
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Local order store is corrupt: {self._data_file}") from exc
        if not isinstance(payload, list):
            raise ValueError("Local order store must contain a JSON array.")
        return [item for item in payload if isinstance(item, dict)]

    def _write(self, data: List[Dict]) -> None:
        self._data_file.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data, ensure_ascii=False, indent=2)
        self._data_file.write_text(content + "\n", encoding="utf-8")
