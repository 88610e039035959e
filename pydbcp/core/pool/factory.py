"""
Connection factories: how a pool opens one new physical connection.

A pool holds a ConnectionFactory and calls ``acquire()`` whenever it needs
a fresh connection. Factories keep no reference to what they return, do no
caching and add no locking, so one instance can be shared by any number of
threads. Whatever the endpoint raises (bad credentials, unreachable host,
malformed url) propagates unchanged; mapping it to pool semantics is the
pool's job.

Credential override: when a factory is given a user, that user (and the
given password, which may be None) wins over the credentials configured on
the endpoint. Without a user the endpoint's own defaults apply.
"""

import logging
from collections.abc import Mapping, MutableMapping, Sequence
from typing import Any, Protocol, runtime_checkable

from .datasource import ConnectionSource
from .drivers import PASSWORD_KEY, USER_KEY, Driver, get_driver, redact_url

_log = logging.getLogger(__name__)


@runtime_checkable
class ConnectionFactory(Protocol):
    """Opens one new connection per call."""

    def acquire(self) -> Any: ...


def _override_credentials(
    properties: Mapping[str, Any] | None, user: str | None, password: str | None
) -> Mapping[str, Any] | None:
    """Properties to hand to the driver; the caller's mapping is never modified."""
    if user is None:
        return properties
    merged = dict(properties or {})
    merged[USER_KEY] = user
    if password is not None:
        merged[PASSWORD_KEY] = password
    else:
        merged.pop(PASSWORD_KEY, None)
    return merged


def _describe_properties(properties: Mapping[str, Any] | None) -> str:
    if properties is None:
        return "None"
    shown = {
        k: ("***" if k == PASSWORD_KEY else v) for k, v in properties.items()
    }
    return repr(shown)


class DriverConnectionFactory:
    """Opens connections straight from a driver with a url and properties.

    The properties mapping is kept by reference and read on every
    ``acquire()``, so configuration code may still fill it in after the
    factory is built.
    """

    def __init__(
        self,
        driver: Driver,
        url: str,
        properties: MutableMapping[str, Any] | None = None,
        *,
        user: str | None = None,
        password: str | None = None,
    ) -> None:
        self._driver = driver
        self._url = url
        self._properties = properties
        self._user = user
        self._password = password

    @property
    def driver(self) -> Driver:
        return self._driver

    @property
    def url(self) -> str:
        return self._url

    @property
    def properties(self) -> MutableMapping[str, Any] | None:
        return self._properties

    @property
    def user(self) -> str | None:
        return self._user

    def acquire(self) -> Any:
        _log.debug("acquire connection from %s", redact_url(self._url))
        props = _override_credentials(self._properties, self._user, self._password)
        return self._driver.connect(self._url, props)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__} [{self._driver!r};{redact_url(self._url)};"
            f"{_describe_properties(self._properties)}]"
        )


class DataSourceConnectionFactory:
    """Opens connections from a pre-configured connection source.

    *password* may be given as str or bytes; it is held as bytes so that an
    empty password (``b""``) stays distinct from no password (``None``).
    Bytes must be UTF-8; anything else is rejected here with ValueError.
    """

    def __init__(
        self,
        source: ConnectionSource,
        user: str | None = None,
        password: str | bytes | None = None,
    ) -> None:
        self._source = source
        self._user = user
        self._password: bytes | None = None
        self._password_text: str | None = None
        try:
            if isinstance(password, str):
                self._password = password.encode("utf-8")
                self._password_text = password
            elif password is not None:
                self._password = bytes(password)
                self._password_text = self._password.decode("utf-8")
        except UnicodeError as e:
            raise ValueError("password must be valid UTF-8") from e

    @property
    def source(self) -> ConnectionSource:
        return self._source

    @property
    def user(self) -> str | None:
        return self._user

    @property
    def password(self) -> bytes | None:
        return self._password

    def acquire(self) -> Any:
        if self._user is None:
            _log.debug("acquire connection from %r", self._source)
            return self._source.get_connection()
        _log.debug("acquire connection from %r as %s", self._source, self._user)
        return self._source.get_connection(self._user, self._password_text)

    def __repr__(self) -> str:
        return f"{type(self).__name__} [{self._source!r};user={self._user!r}]"


class DriverManagerConnectionFactory:
    """Opens connections through whichever driver accepts the url.

    The driver is looked up on every ``acquire()`` among *drivers* (default:
    the built-in psycopg, pymysql and trino drivers). ValueError when none
    accepts the url.
    """

    def __init__(
        self,
        url: str,
        properties: MutableMapping[str, Any] | None = None,
        *,
        user: str | None = None,
        password: str | None = None,
        drivers: Sequence[Driver] | None = None,
    ) -> None:
        self._url = url
        self._properties = properties
        self._user = user
        self._password = password
        self._drivers = tuple(drivers) if drivers is not None else None

    @property
    def url(self) -> str:
        return self._url

    @property
    def properties(self) -> MutableMapping[str, Any] | None:
        return self._properties

    @property
    def user(self) -> str | None:
        return self._user

    def acquire(self) -> Any:
        driver = get_driver(self._url, self._drivers)
        _log.debug("acquire connection from %s via %r", redact_url(self._url), driver)
        props = _override_credentials(self._properties, self._user, self._password)
        return driver.connect(self._url, props)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__} [{redact_url(self._url)};"
            f"{_describe_properties(self._properties)};user={self._user!r}]"
        )
