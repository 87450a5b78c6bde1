"""Hand parse results to the storage collaborator"""

from typing import Optional

from entryimport.core.convert.document import is_valid_doc
from entryimport.core.models import EntryContent, EntryFields, ParseResult
from entryimport.crud.repo import EntryRepo


def content_error(content: Optional[EntryContent]) -> Optional[str]:
    """Why content cannot be saved, or None. Unset content is left alone."""
    if content is None:
        return None
    if content.doc is None:
        return "Rich content (structured document) is required"
    if not is_valid_doc(content.doc):
        return "Invalid rich content format"
    return None


def _check(fields: EntryFields, label: str) -> None:
    error = content_error(fields.content)
    if error:
        raise ValueError(f"{label}: {error}")


def commit_result(repo: EntryRepo, result: ParseResult, entry_id: str | None = None) -> list[tuple[str, str]]:
    """Create or update one stored entry per parsed entry.

    A single-entry result with entry_id updates that entry, applying only
    the fields the import set; everything else is created. Returns
    (status, id) pairs where status is 'created', 'updated' or 'unchanged'.
    Raises ValueError before writing anything if an entry's content has no
    valid structured document.
    """
    if not result.success:
        return []
    if entry_id is not None and len(result.entries) == 1:
        stored = repo.get(entry_id)
        if stored is None:
            raise KeyError(f"Entry {entry_id} not found")
        merged = stored.merged(result.entries[0])
        if merged == stored:
            return [('unchanged', entry_id)]
        _check(merged, f"Entry {entry_id}")
        repo.update(entry_id, merged)
        return [('updated', entry_id)]
    for i, fields in enumerate(result.entries, start=1):
        _check(fields, f"Entry {i}")
    return [('created', repo.create(fields)) for fields in result.entries]
