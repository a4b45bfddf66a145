import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tablekit.db import Base
from tablekit.services.table_type import TableRegistry
from tests.models import Person, Team


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={
            "check_same_thread": False,
        },
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    return engine


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(bind=connection, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def teams(db_session):
    red = Team(id=1, name="Red")
    blue = Team(id=2, name="Blue")
    db_session.add_all([red, blue])
    db_session.flush()
    return {"red": red, "blue": blue}


@pytest.fixture()
def people(db_session, teams):
    """23 people; every third one is inactive, ages run 21..43 in id order."""
    items = []
    for index in range(1, 24):
        items.append(
            Person(
                id=index,
                first_name=f"First{index:02d}",
                last_name=f"Last{index:02d}",
                status="inactive" if index % 3 == 0 else "active",
                age=20 + index,
                is_admin=index == 1,
                team_id=teams["red"].id if index % 2 else teams["blue"].id,
            )
        )
    db_session.add_all(items)
    db_session.flush()
    return items


@pytest.fixture()
def registry():
    registered = set(TableRegistry.names())
    yield TableRegistry
    for name in TableRegistry.names():
        if name not in registered:
            TableRegistry.unregister(name)
