"""Bulk loading of entities from JSON lines."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .errors import MatchingError
from .schemas import Entity


class EntityWriter(Protocol):
    def upsert_entity(self, entity: Entity) -> None:
        """Create or update one entity."""


class EntityLoadError(ValueError):
    """Raised when entity loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[Entity]):
        super().__init__("Entity loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Entity loading failed: {self.errors}"


class EntityLoader:
    """Parse one entity per line and hand each valid one to the writer."""

    def __init__(self, writer: EntityWriter):
        self._writer = writer

    def load(self, path: Path) -> list[Entity]:
        loaded: list[Entity] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                try:
                    entity = Entity.model_validate(record)
                except ValidationError as exc:
                    errors.append(f"line {idx}: {exc.error_count()} validation error(s): {exc.errors()[0]['msg']}")
                    continue
                try:
                    self._writer.upsert_entity(entity)
                except MatchingError as exc:
                    errors.append(f"line {idx}: {exc}")
                    continue
                loaded.append(entity)
        if errors:
            raise EntityLoadError(errors, loaded)
        return loaded
