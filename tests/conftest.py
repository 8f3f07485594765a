import os
import pytest
from sqlalchemy import delete
from models.base import Base, dispose_engine, init_engine_and_session
from models.schema import FlightService, ReceiptCounter
from services.tariff import get_tariff


@pytest.fixture(scope="session", autouse=True)
def _set_env(tmp_path_factory):
    os.environ["APP_ENV"] = "test"
    os.environ.setdefault("AUTO_CREATE_SCHEMA", "1")
    # point at a throwaway SQLite file unless a real test DB is provided
    db_file = tmp_path_factory.mktemp("db") / "billing_test.sqlite3"
    os.environ["DATABASE_URL"] = os.getenv(
        "TEST_DATABASE_URL") or f"sqlite:///{db_file}"
    dispose_engine()
    yield
    dispose_engine()


@pytest.fixture(autouse=True)
def _fresh_tariff():
    get_tariff.cache_clear()
    yield
    get_tariff.cache_clear()


@pytest.fixture(scope="session")
def db_engine(_set_env):
    engine, _Session = init_engine_and_session()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(autouse=True)
def _db_clean(db_engine):
    with db_engine.begin() as conn:
        conn.execute(delete(FlightService))
        conn.execute(delete(ReceiptCounter))
    yield


@pytest.fixture(scope="session")
def app(db_engine):
    from app import create_app
    return create_app({"TESTING": True})


@pytest.fixture()
def client(app):
    return app.test_client()
