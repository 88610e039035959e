"""Unit tests for connection factories (driver, data source, driver lookup)."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from pydbcp.core.pool import (
    ConnectionFactory,
    DataSourceConnectionFactory,
    DriverConnectionFactory,
    DriverManagerConnectionFactory,
)
from tests.utils.tester import (
    TESTER_URL,
    TesterConnection,
    TesterDatabaseError,
    TesterDataSource,
    TesterDriver,
)

# --- DriverConnectionFactory ---


def test_driver_factory_repr_contains_url() -> None:
    cf = DriverConnectionFactory(TesterDriver(), TESTER_URL, None)
    assert TESTER_URL in repr(cf)
    assert "DriverConnectionFactory" in repr(cf)


def test_driver_factory_repr_masks_password() -> None:
    cf = DriverConnectionFactory(
        TesterDriver(), TESTER_URL, {"user": "foo", "password": "bar"}
    )
    assert "bar" not in repr(cf)
    assert "'user': 'foo'" in repr(cf)


def test_driver_factory_create_connection() -> None:
    cf = DriverConnectionFactory(TesterDriver(), TESTER_URL, None)
    conn = cf.acquire()
    assert isinstance(conn, TesterConnection)
    assert conn.user == "test"


def test_driver_factory_is_a_connection_factory() -> None:
    cf = DriverConnectionFactory(TesterDriver(), TESTER_URL, None)
    assert isinstance(cf, ConnectionFactory)


def test_driver_factory_passes_properties_unmodified() -> None:
    driver = TesterDriver()
    props = {"user": "foo", "password": "bar", "application_name": "x"}
    cf = DriverConnectionFactory(driver, TESTER_URL, props)
    conn = cf.acquire()
    assert conn.user == "foo"
    assert driver.calls[-1][1] is props


def test_driver_factory_reads_properties_at_acquire_time() -> None:
    props: dict[str, str] = {}
    cf = DriverConnectionFactory(TesterDriver(), TESTER_URL, props)
    props["user"] = "u1"
    props["password"] = "p1"
    assert cf.acquire().user == "u1"


def test_driver_factory_override_user_wins() -> None:
    props = {"user": "u1", "password": "p1"}
    cf = DriverConnectionFactory(
        TesterDriver(), TESTER_URL, props, user="foo", password="bar"
    )
    conn = cf.acquire()
    assert conn.user == "foo"
    assert conn.password == "bar"
    assert props == {"user": "u1", "password": "p1"}


def test_driver_factory_override_user_without_password() -> None:
    driver = MagicMock()
    driver.connect.return_value = TesterConnection("foo", None)
    cf = DriverConnectionFactory(
        driver, TESTER_URL, {"user": "u1", "password": "p1"}, user="foo"
    )
    cf.acquire()
    driver.connect.assert_called_once_with(TESTER_URL, {"user": "foo"})


def test_driver_factory_override_with_empty_password() -> None:
    driver = MagicMock()
    cf = DriverConnectionFactory(driver, TESTER_URL, None, user="foo", password="")
    cf.acquire()
    driver.connect.assert_called_once_with(
        TESTER_URL, {"user": "foo", "password": ""}
    )


def test_driver_factory_propagates_driver_error() -> None:
    cf = DriverConnectionFactory(
        TesterDriver(), TESTER_URL, {"user": "foo", "password": "wrong"}
    )
    with pytest.raises(TesterDatabaseError, match="wrong password"):
        cf.acquire()


def test_driver_factory_opens_new_connection_per_call() -> None:
    cf = DriverConnectionFactory(TesterDriver(), TESTER_URL, None)
    assert cf.acquire() is not cf.acquire()


def test_driver_factory_concurrent_acquire() -> None:
    driver = TesterDriver()
    cf = DriverConnectionFactory(driver, TESTER_URL, {"user": "u2", "password": "p2"})
    with ThreadPoolExecutor(max_workers=10) as executor:
        conns = list(executor.map(lambda _: cf.acquire(), range(50)))
    assert len({id(c) for c in conns}) == 50
    assert all(c.user == "u2" for c in conns)
    assert len(driver.calls) == 50


# --- DataSourceConnectionFactory ---


def test_datasource_factory_default_values() -> None:
    cf = DataSourceConnectionFactory(TesterDataSource())
    assert cf.acquire().user is None


def test_datasource_factory_credentials() -> None:
    cf = DataSourceConnectionFactory(TesterDataSource(), "foo", "bar")
    conn = cf.acquire()
    assert conn.user == "foo"
    assert conn.password == "bar"


def test_datasource_factory_empty_password() -> None:
    cf = DataSourceConnectionFactory(TesterDataSource(), "foo", None)
    conn = cf.acquire()
    assert conn.user == "foo"
    assert conn.password is None


def test_datasource_factory_empty_user() -> None:
    cf = DataSourceConnectionFactory(TesterDataSource(), None, b"a")
    assert cf.acquire().user is None


def test_datasource_factory_password_bytes() -> None:
    cf = DataSourceConnectionFactory(TesterDataSource(), "foo", b"")
    assert cf.password == b""
    assert cf.acquire().password == ""
    cf_none = DataSourceConnectionFactory(TesterDataSource(), "foo")
    assert cf_none.password is None


def test_datasource_factory_default_path_calls_without_arguments() -> None:
    source = MagicMock()
    DataSourceConnectionFactory(source, None, "ignored").acquire()
    source.get_connection.assert_called_once_with()


def test_datasource_factory_propagates_source_error() -> None:
    source = MagicMock()
    source.get_connection.side_effect = TesterDatabaseError("unreachable")
    cf = DataSourceConnectionFactory(source, "foo", "bar")
    with pytest.raises(TesterDatabaseError, match="unreachable"):
        cf.acquire()


def test_datasource_factory_repr() -> None:
    cf = DataSourceConnectionFactory(TesterDataSource("orders-db"), "foo", "secret")
    text = repr(cf)
    assert "orders-db" in text
    assert "foo" in text
    assert "secret" not in text


# --- DriverManagerConnectionFactory ---


def test_driver_manager_factory_finds_driver() -> None:
    driver = TesterDriver()
    cf = DriverManagerConnectionFactory(
        TESTER_URL, user="foo", password="bar", drivers=[driver]
    )
    assert cf.acquire().user == "foo"


def test_driver_manager_factory_url_credentials() -> None:
    cf = DriverManagerConnectionFactory(
        f"{TESTER_URL}?user=u1&password=p1", {}, drivers=[TesterDriver()]
    )
    assert cf.acquire().user == "u1"


def test_driver_manager_factory_no_driver() -> None:
    cf = DriverManagerConnectionFactory("oracle://db/x", drivers=[TesterDriver()])
    with pytest.raises(ValueError, match="No suitable driver"):
        cf.acquire()


def test_driver_manager_factory_repr_contains_url() -> None:
    cf = DriverManagerConnectionFactory(TESTER_URL, drivers=[TesterDriver()])
    assert TESTER_URL in repr(cf)


def test_datasource_factory_rejects_non_utf8_password() -> None:
    """Undecodable password bytes fail at construction, never inside acquire()."""
    with pytest.raises(ValueError, match="UTF-8"):
        DataSourceConnectionFactory(TesterDataSource(), "foo", b"\xff\xfe")


def test_datasource_factory_utf8_password_bytes() -> None:
    source = MagicMock()
    cf = DataSourceConnectionFactory(source, "foo", "pässword".encode("utf-8"))
    cf.acquire()
    cf.acquire()
    assert source.get_connection.call_count == 2
    source.get_connection.assert_called_with("foo", "pässword")
    assert cf.password == "pässword".encode("utf-8")
