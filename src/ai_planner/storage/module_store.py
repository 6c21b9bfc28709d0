from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List

from ai_planner.planning.models import ModuleDescriptor


class ModuleJsonlStore:
    """JSONL persistence for plan modules, one line per (plan_id, order_index)."""

    def __init__(self, path: Path):
        """Ensure the backing directory exists and record the JSONL filepath."""
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_rows(self) -> List[Dict]:
        if not self.path.exists():
            return []
        rows: List[Dict] = []
        with self.path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    rows.append(json.loads(line))
        return rows

    def _write_rows(self, rows: Iterable[Dict]) -> None:
        with self.path.open("w", encoding="utf-8") as handle:
            for row in rows:
                handle.write(json.dumps(row, ensure_ascii=False))
                handle.write("\n")

    def load(self, plan_id: str) -> List[ModuleDescriptor]:
        """Return the stored modules of a plan ordered by `order_index`."""
        modules = [
            ModuleDescriptor.model_validate({k: v for k, v in row.items() if k != "plan_id"})
            for row in self._read_rows()
            if row.get("plan_id") == plan_id
        ]
        return sorted(modules, key=lambda module: module.order_index)

    def replace(self, plan_id: str, modules: Iterable[ModuleDescriptor]) -> int:
        """Drop every module stored for `plan_id` and write `modules` in its place."""
        new_rows = [
            {"plan_id": plan_id, **module.model_dump()}
            for module in sorted(modules, key=lambda module: module.order_index)
        ]
        order_indexes = [row["order_index"] for row in new_rows]
        if len(set(order_indexes)) != len(order_indexes):
            raise ValueError(f"Duplicate order_index in module set for plan {plan_id}")
        kept = [row for row in self._read_rows() if row.get("plan_id") != plan_id]
        self._write_rows(kept + new_rows)
        return len(new_rows)

    def delete(self, plan_id: str) -> None:
        """Remove all modules stored for `plan_id`."""
        self._write_rows(row for row in self._read_rows() if row.get("plan_id") != plan_id)
