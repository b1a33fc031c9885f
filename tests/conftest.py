from decimal import Decimal

import pytest
from sqlalchemy import text

from app.core.database import Base
from app.models.configuration_setting import ConfigurationSetting  # noqa: F401
from app.services.baseline_store import SettingRow
from app.services.connection import Connection
from app.services.session_controller import SessionContext, SessionController


@pytest.fixture
def connection():
    conn = Connection()
    assert conn.try_open("sqlite://")
    Base.metadata.create_all(bind=conn.engine)
    conn.active_store().seed(
        [
            SettingRow("MaxRetries", Decimal("3.00")),
            SettingRow("Timeout", Decimal("30.00")),
        ]
    )
    yield conn
    conn.close()


@pytest.fixture
def unconstrained_connection():
    """Settings table created by hand without the unique key constraint"""
    conn = Connection()
    assert conn.try_open("sqlite://")
    with conn.engine.begin() as db:
        db.execute(
            text(
                "CREATE TABLE configuration_settings ("
                "config_id INTEGER PRIMARY KEY, "
                "config_description VARCHAR(50) NOT NULL, "
                "config_value NUMERIC(10, 2) NOT NULL)"
            )
        )
    insert_raw(conn, "A", "1.00")
    insert_raw(conn, "B", "2.00")
    yield conn
    conn.close()


@pytest.fixture
def store(connection):
    return connection.active_store()


@pytest.fixture
def session_context(connection):
    return SessionContext(connection=connection)


@pytest.fixture
def controller():
    return SessionController()


def stored_values(store):
    return {row.key: row.value for row in store.query()}


def insert_raw(connection, key, value):
    with connection.engine.begin() as db:
        db.execute(
            text("INSERT INTO configuration_settings (config_description, config_value) VALUES (:key, :value)"),
            {"key": key, "value": value},
        )
