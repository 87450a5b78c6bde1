from sqlmodel import SQLModel, create_engine

from entryimport.crud import sql_models  # noqa: F401  registers the entries table


def make_engine(db_url: str):
    return create_engine(db_url, echo=False)


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)
