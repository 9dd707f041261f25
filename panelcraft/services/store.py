"""Caller-owned in-memory repository for characters and style guides.

Each registry/catalog gets its own store (or one injected by the caller), so
separate projects and tests never share records.
"""

from __future__ import annotations

import json
from typing import Generic, Iterator, TypeVar

from pydantic import BaseModel, TypeAdapter

T = TypeVar("T", bound=BaseModel)


class InMemoryStore(Generic[T]):
    def __init__(self, model: type[T]):
        self.model = model
        self._records: dict[str, T] = {}

    def get(self, record_id: str) -> T | None:
        return self._records.get(record_id)

    def put(self, record: T) -> T:
        self._records[record.id] = record
        return record

    def delete(self, record_id: str) -> T | None:
        return self._records.pop(record_id, None)

    def list(self) -> list[T]:
        return list(self._records.values())

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._records.values()))

    def dump_json(self, indent: int | None = 2) -> str:
        """Serialize every record with its JSON (camelCase) field names."""
        payload = [record.model_dump(mode="json", by_alias=True) for record in self._records.values()]
        return json.dumps(payload, indent=indent, ensure_ascii=False)

    def load_json(self, payload: str) -> list[T]:
        """Validate and upsert records from a JSON array.

        Raises:
            pydantic.ValidationError: If any record is malformed; nothing is stored then.
        """
        records = TypeAdapter(list[self.model]).validate_json(payload)
        for record in records:
            self.put(record)
        return records
