"""
Managed connection source over a configured DataSource.
"""

import logging
from typing import Any, Protocol, runtime_checkable

from pydbcp.models import DataSource

from .connect import connect, datasource_url
from .drivers import Driver, redact_url

_log = logging.getLogger(__name__)


@runtime_checkable
class ConnectionSource(Protocol):
    """A pre-configured provider of connections, optionally per user."""

    def get_connection(
        self, user: str | None = None, password: str | None = None
    ) -> Any: ...


class BasicDataSource:
    """Opens connections for one DataSource, with optional per-call credentials."""

    def __init__(self, config: DataSource, *, driver: Driver | None = None) -> None:
        self._config = config
        self._driver = driver

    @property
    def config(self) -> DataSource:
        return self._config

    @property
    def url(self) -> str:
        return datasource_url(self._config)

    def get_connection(
        self, user: str | None = None, password: str | None = None
    ) -> Any:
        if user is None:
            _log.debug("open connection to %s as configured user", self._config.name)
        else:
            _log.debug("open connection to %s as %s", self._config.name, user)
        return connect(self._config, user=user, password=password, driver=self._driver)

    def __repr__(self) -> str:
        return f"BasicDataSource(name={self._config.name!r}, url={redact_url(self.url)!r})"
