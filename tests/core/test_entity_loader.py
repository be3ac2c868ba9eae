from __future__ import annotations

import json
from pathlib import Path

import pytest

from swipematch.errors import RoleChangeError
from swipematch.loading import EntityLoadError, EntityLoader
from swipematch.schemas import Entity


class RecordingWriter:
    def __init__(self):
        self.stored: dict[int, Entity] = {}

    def upsert_entity(self, entity: Entity) -> None:
        existing = self.stored.get(entity.entity_id)
        if existing is not None and existing.role != entity.role:
            raise RoleChangeError(f"Entity {entity.entity_id} cannot change role")
        self.stored[entity.entity_id] = entity


def test_entity_loader_raises_on_invalid_json(tmp_path: Path):
    loader = EntityLoader(RecordingWriter())
    path = tmp_path / "entities.jsonl"
    path.write_text('{"entity_id": 1}\n{invalid}', encoding="utf-8")

    with pytest.raises(EntityLoadError) as exc:
        loader.load(path)
    assert "invalid JSON" in str(exc.value)
    assert [entity.entity_id for entity in exc.value.partial] == [1]


def test_entity_loader_skips_invalid_and_reports(tmp_path: Path):
    writer = RecordingWriter()
    loader = EntityLoader(writer)
    path = tmp_path / "entities.jsonl"
    records = [
        {"entity_id": 1, "role": "company", "profile": {"role": "company", "company_name": "Acme"}},
        {"entity_id": 2, "role": "agent", "profile": {"role": "company", "company_name": "Wrong"}},
        {"entity_id": 1, "role": "agent", "profile": {"role": "agent", "full_name": "Switcher"}},
    ]
    path.write_text(
        "\n".join(json.dumps(item) for item in records) + "\n\n",
        encoding="utf-8",
    )

    with pytest.raises(EntityLoadError) as exc:
        loader.load(path)
    error = exc.value
    assert error.errors[0].startswith("line 2:")
    assert error.errors[1].startswith("line 3:")
    assert len(error.partial) == 1
    assert writer.stored[1].role == "company"


def test_entity_loader_returns_all_entities(tmp_path: Path, make_company, make_agent):
    writer = RecordingWriter()
    path = tmp_path / "entities.jsonl"
    path.write_text(
        "\n".join(entity.model_dump_json() for entity in (make_company(1), make_agent(2))),
        encoding="utf-8",
    )

    loaded = EntityLoader(writer).load(path)

    assert [entity.entity_id for entity in loaded] == [1, 2]
    assert set(writer.stored) == {1, 2}
