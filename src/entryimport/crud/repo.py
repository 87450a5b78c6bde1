"""Storage collaborator interface: entries are created and updated by id"""

from abc import ABC, abstractmethod

from entryimport.core.models import EntryFields


class EntryRepo(ABC):
    @abstractmethod
    def create(self, fields: EntryFields) -> str:
        """Store a new entry and return its id."""
        raise NotImplementedError

    @abstractmethod
    def update(self, entry_id: str, fields: EntryFields) -> EntryFields:
        """Replace the stored entry; raises KeyError for an unknown id."""
        raise NotImplementedError

    @abstractmethod
    def get(self, entry_id: str) -> EntryFields | None:
        raise NotImplementedError

    @abstractmethod
    def list_ids(self) -> list[str]:
        raise NotImplementedError
