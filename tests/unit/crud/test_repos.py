"""Unit tests for crud/memory_repo.py, crud/sql_repo.py and crud/entries.py"""

import pytest

from entryimport.core.models import EntryContent, EntryFields, ParseResult
from entryimport.crud.entries import commit_result, content_error
from entryimport.crud.sql_models import EntryRow


# --- repos ---

def test_create_and_get(repo, fields):
    entry_id = repo.create(fields)
    assert repo.get(entry_id) == fields
    assert repo.list_ids() == [entry_id]


def test_get_missing_returns_none(repo):
    assert repo.get("0" * 32) is None


def test_update_replaces_entry(repo, fields):
    entry_id = repo.create(fields)
    repo.update(entry_id, EntryFields(title="Replaced"))
    assert repo.get(entry_id) == EntryFields(title="Replaced")


def test_update_unknown_id(repo, fields):
    with pytest.raises(KeyError):
        repo.update("0" * 32, fields)


def test_sql_repo_stores_public_names(sql_repo, session, fields):
    """Stored rows keep the public field names and omit unset fields."""
    entry_id = sql_repo.create(fields)
    row = session.get(EntryRow, entry_id)
    assert row.title == "Stored entry"
    assert row.data["content"]["structuredDoc"]["type"] == "doc"
    assert "coverImageUrl" not in row.data


def test_sql_repo_update_refreshes_row(sql_repo, session, fields):
    entry_id = sql_repo.create(fields)
    sql_repo.update(entry_id, EntryFields(title="Renamed"))
    row = session.get(EntryRow, entry_id)
    assert row.title == "Renamed"
    assert row.data == {"title": "Renamed"}
    assert row.updated_at >= row.created_at


def test_sql_repo_empty_table(sql_repo):
    assert sql_repo.list_ids() == []


def test_sql_repo_lists_in_creation_order(sql_repo):
    ids = [sql_repo.create(EntryFields(title=t)) for t in ("A", "B", "C")]
    assert sorted(sql_repo.list_ids()) == sorted(ids)
    assert [sql_repo.get(i).title for i in ids] == ["A", "B", "C"]


# --- commit_result ---

def _result(*entries):
    return ParseResult(success=True, entries=list(entries))


def test_commit_creates_one_entry_each(repo):
    changes = commit_result(repo, _result(EntryFields(title="A"), EntryFields(title="B")))
    assert [status for status, _ in changes] == ["created", "created"]
    assert sorted(repo.get(i).title for _, i in changes) == ["A", "B"]


def test_commit_updates_only_set_fields(repo, fields):
    """Updating merges the imported fields over the stored entry."""
    entry_id = repo.create(fields)
    changes = commit_result(repo, _result(EntryFields(title="New title")), entry_id)
    assert changes == [("updated", entry_id)]
    stored = repo.get(entry_id)
    assert stored.title == "New title"
    assert stored.excerpt == fields.excerpt
    assert stored.content == fields.content


def test_commit_unchanged(repo, fields):
    entry_id = repo.create(fields)
    assert commit_result(repo, _result(EntryFields()), entry_id) == [("unchanged", entry_id)]


def test_commit_update_missing_entry(repo):
    with pytest.raises(KeyError):
        commit_result(repo, _result(EntryFields(title="A")), "0" * 32)


def test_commit_failed_result(repo):
    assert commit_result(repo, ParseResult(success=False, error="No content to import")) == []
    assert repo.list_ids() == []


# --- content checks ---

DOC = {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "x"}]}]}


@pytest.mark.parametrize("content,error", [
    (None, None),
    (EntryContent(doc=DOC, markup="<p>x</p>"), None),
    (EntryContent(doc=None, markup="<p>x</p>"), "Rich content (structured document) is required"),
    (EntryContent(doc={"type": "paragraph"}, markup="<p>x</p>"), "Invalid rich content format"),
    (EntryContent(doc={"type": "doc", "content": "nope"}, markup=""), "Invalid rich content format"),
])
def test_content_error(content, error):
    assert content_error(content) == error


@pytest.mark.parametrize("content", [
    EntryContent(doc=None, markup="<p>x</p>"),
    EntryContent(doc={"type": "paragraph"}, markup="<p>x</p>"),
])
def test_commit_create_rejects_bad_content(repo, content):
    """No entry is written when any entry in the batch lacks a valid document."""
    result = _result(EntryFields(title="Fine"), EntryFields(title="Broken", content=content))
    with pytest.raises(ValueError, match="Entry 2: "):
        commit_result(repo, result)
    assert repo.list_ids() == []


def test_commit_update_rejects_bad_content(repo, fields):
    entry_id = repo.create(fields)
    update = _result(EntryFields(content=EntryContent(doc=None, markup="<p>new</p>")))
    with pytest.raises(ValueError, match="Rich content"):
        commit_result(repo, update, entry_id)
    assert repo.get(entry_id) == fields
