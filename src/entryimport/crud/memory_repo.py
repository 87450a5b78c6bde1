from dataclasses import dataclass, field
from uuid import uuid4

from entryimport.core.models import EntryFields
from entryimport.crud.repo import EntryRepo


@dataclass
class MemoryRepo(EntryRepo):
    _entries: dict[str, EntryFields] = field(default_factory=dict)

    def create(self, fields: EntryFields) -> str:
        entry_id = uuid4().hex
        self._entries[entry_id] = fields
        return entry_id

    def update(self, entry_id: str, fields: EntryFields) -> EntryFields:
        if entry_id not in self._entries:
            raise KeyError(f"Entry {entry_id} not found")
        self._entries[entry_id] = fields
        return fields

    def get(self, entry_id: str) -> EntryFields | None:
        return self._entries.get(entry_id)

    def list_ids(self) -> list[str]:
        return list(self._entries)
