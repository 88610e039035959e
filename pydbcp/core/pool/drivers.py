"""
Low-level driver endpoints for external DBs.

Each driver turns a connection url plus a properties dict into one live
DB-API connection using psycopg (PostgreSQL), pymysql (MySQL) or trino
(Trino). Credentials come from the ``user`` / ``password`` properties and
fall back to the ones embedded in the url. Other properties are passed to
the underlying library as keyword arguments.

Driver errors are not translated: psycopg.OperationalError,
pymysql.err.OperationalError, trino.exceptions.* reach the caller as is.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable
from urllib.parse import SplitResult, parse_qsl, unquote, urlsplit

import psycopg
import pymysql
from trino.auth import BasicAuthentication
from trino.dbapi import connect as trino_connect

from pydbcp.core.config import settings

_log = logging.getLogger(__name__)

USER_KEY = "user"
PASSWORD_KEY = "password"


@runtime_checkable
class Driver(Protocol):
    """Endpoint capability: open a connection for a url and properties."""

    def accepts_url(self, url: str) -> bool: ...

    def connect(self, url: str, properties: Mapping[str, Any] | None) -> Any: ...


def redact_url(url: str | None) -> str:
    """Return *url* with any embedded password replaced by ``***``."""
    if not url:
        return str(url)
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if parts.password is None:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return parts._replace(netloc=netloc).geturl()


def _scheme(url: str | None) -> str:
    if not url or "://" not in url:
        return ""
    return url.split("://", 1)[0].lower()


def _split_properties(
    parts: SplitResult, properties: Mapping[str, Any] | None
) -> tuple[str | None, str | None, dict[str, Any]]:
    """Return (user, password, remaining kwargs). Properties win over the url."""
    extra = {k: v for k, v in (properties or {}).items() if v is not None}
    user = extra.pop(USER_KEY, None)
    password = extra.pop(PASSWORD_KEY, None)
    if user is None and parts.username is not None:
        user = unquote(parts.username)
    if password is None and parts.password is not None:
        password = unquote(parts.password)
    return user, password, extra


def _path_segments(parts: SplitResult) -> list[str]:
    return [unquote(p) for p in parts.path.split("/") if p]


class _BaseDriver:
    schemes: tuple[str, ...] = ()

    def accepts_url(self, url: str) -> bool:
        return _scheme(url) in self.schemes

    def _check_url(self, url: str) -> SplitResult:
        if not self.accepts_url(url):
            raise ValueError(
                f"{type(self).__name__} does not accept url: {redact_url(url)}"
            )
        parts = urlsplit(url)
        if not parts.hostname:
            raise ValueError(f"url must provide host: {redact_url(url)}")
        return parts

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PostgresDriver(_BaseDriver):
    """psycopg driver for ``postgresql://`` and ``postgres://`` urls."""

    schemes = ("postgresql", "postgres")

    def connect(self, url: str, properties: Mapping[str, Any] | None) -> Any:
        parts = self._check_url(url)
        user, password, extra = _split_properties(parts, properties)
        if user is not None:
            extra[USER_KEY] = user
        if password is not None:
            extra[PASSWORD_KEY] = password
        extra.setdefault("connect_timeout", settings.EXTERNAL_DB_CONNECT_TIMEOUT)
        _log.debug("psycopg connect host=%s user=%s", parts.hostname, user)
        # keyword arguments override the same keys in the conninfo url
        return psycopg.connect(url, **extra)


class MySQLDriver(_BaseDriver):
    """pymysql driver for ``mysql://host[:port]/database`` urls."""

    schemes = ("mysql",)

    def connect(self, url: str, properties: Mapping[str, Any] | None) -> Any:
        parts = self._check_url(url)
        user, password, extra = _split_properties(parts, properties)
        segments = _path_segments(parts)
        kwargs: dict[str, Any] = dict(parse_qsl(parts.query))
        kwargs.update(extra)
        kwargs["host"] = parts.hostname
        kwargs["port"] = int(parts.port or 3306)
        if segments:
            kwargs["database"] = segments[0]
        if user is not None:
            kwargs[USER_KEY] = user
        if password is not None:
            kwargs[PASSWORD_KEY] = password
        kwargs.setdefault("connect_timeout", settings.EXTERNAL_DB_CONNECT_TIMEOUT)
        _log.debug("pymysql connect host=%s user=%s", parts.hostname, user)
        return pymysql.connect(**kwargs)


class TrinoDriver(_BaseDriver):
    """trino driver for ``trino://host[:port]/catalog[/schema][?ssl=true]`` urls."""

    schemes = ("trino",)

    def connect(self, url: str, properties: Mapping[str, Any] | None) -> Any:
        parts = self._check_url(url)
        user, password, extra = _split_properties(parts, properties)
        query = dict(parse_qsl(parts.query))
        use_ssl = str(extra.pop("ssl", query.get("ssl", ""))).lower() in (
            "true",
            "1",
            "yes",
        )
        if use_ssl and not (password and password.strip()):
            raise ValueError("Password is required for Trino when using SSL/HTTPS.")
        segments = _path_segments(parts)
        extra.setdefault("source", settings.TRINO_SOURCE)
        extra.setdefault("request_timeout", settings.EXTERNAL_DB_CONNECT_TIMEOUT)
        _log.debug("trino connect host=%s user=%s ssl=%s", parts.hostname, user, use_ssl)
        return trino_connect(
            host=parts.hostname,
            port=int(parts.port or (443 if use_ssl else 8080)),
            user=user,
            auth=BasicAuthentication(user, password) if password else None,
            catalog=segments[0] if segments else None,
            schema=segments[1] if len(segments) > 1 else settings.TRINO_DEFAULT_SCHEMA,
            http_scheme="https" if use_ssl else "http",
            **extra,
        )


DEFAULT_DRIVERS: tuple[Driver, ...] = (PostgresDriver(), MySQLDriver(), TrinoDriver())


def get_driver(url: str, drivers: Sequence[Driver] | None = None) -> Driver:
    """Return the first driver accepting *url*; ValueError when none does."""
    for driver in DEFAULT_DRIVERS if drivers is None else drivers:
        if driver.accepts_url(url):
            return driver
    raise ValueError(f"No suitable driver for url: {redact_url(url)}")
