"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from entryimport.core.models import EntryContent, EntryFields, EntryStatus
from entryimport.crud.database import init_db
from entryimport.crud.memory_repo import MemoryRepo
from entryimport.crud.sql_repo import SQLRepo


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture(name="fields")
def fields_fixture():
    return EntryFields(
        title="Stored entry",
        excerpt="Kept short.",
        content=EntryContent(
            doc={"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Body"}]}]},
            markup="<p>Body</p>",
        ),
        status=EntryStatus.draft,
        collections=["notes"],
    )


@pytest.fixture(name="memory_repo")
def memory_repo_fixture():
    return MemoryRepo()


@pytest.fixture(name="sql_repo")
def sql_repo_fixture(session):
    return SQLRepo(session)


@pytest.fixture(name="repo", params=["memory", "sql"])
def repo_fixture(request, memory_repo, sql_repo):
    """Each storage test runs against both repo implementations."""
    return memory_repo if request.param == "memory" else sql_repo
