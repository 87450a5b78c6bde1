"""SQLModel-backed entry store"""

from datetime import datetime

from sqlmodel import Session, select

from entryimport.core.models import EntryFields
from entryimport.crud.repo import EntryRepo
from entryimport.crud.sql_models import EntryRow


def _row_to_fields(row: EntryRow) -> EntryFields:
    return EntryFields.model_validate(row.data or {})


def _fields_to_row(fields: EntryFields, existing: EntryRow | None = None) -> EntryRow:
    row = existing or EntryRow()
    row.title = fields.title
    row.data = fields.model_dump(mode="json", by_alias=True, exclude_none=True)
    if existing is not None:
        row.updated_at = datetime.now()
    return row


class SQLRepo(EntryRepo):
    def __init__(self, session: Session):
        self.session = session

    def create(self, fields: EntryFields) -> str:
        row = _fields_to_row(fields)
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row.id

    def update(self, entry_id: str, fields: EntryFields) -> EntryFields:
        row = self.session.get(EntryRow, entry_id)
        if row is None:
            raise KeyError(f"Entry {entry_id} not found")
        self.session.add(_fields_to_row(fields, existing=row))
        self.session.commit()
        return fields

    def get(self, entry_id: str) -> EntryFields | None:
        row = self.session.get(EntryRow, entry_id)
        return _row_to_fields(row) if row else None

    def list_ids(self) -> list[str]:
        rows = self.session.exec(select(EntryRow).order_by(EntryRow.created_at, EntryRow.id)).all()
        return [row.id for row in rows]
