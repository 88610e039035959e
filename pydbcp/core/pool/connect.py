"""
DB connection helper for configured DataSources.

Builds a driver url from the DataSource (product_type, host, port,
database) and opens one connection through the matching driver
(psycopg, pymysql or trino). Credentials: the DataSource's own username
and password, unless an explicit user is passed.
"""

from typing import Any
from urllib.parse import quote

from pydbcp.models import DataSource, ProductTypeEnum

from .drivers import PASSWORD_KEY, USER_KEY, Driver, get_driver

_SCHEMES = {
    ProductTypeEnum.POSTGRES: "postgresql",
    ProductTypeEnum.MYSQL: "mysql",
    ProductTypeEnum.TRINO: "trino",
}


def datasource_url(datasource: DataSource) -> str:
    """Driver url for *datasource*, without credentials."""
    scheme = _SCHEMES.get(datasource.product_type)
    if scheme is None:
        raise ValueError(f"Unsupported product_type: {datasource.product_type}")
    url = (
        f"{scheme}://{datasource.host}:{datasource.effective_port}"
        f"/{quote(datasource.database, safe='')}"
    )
    if datasource.product_type == ProductTypeEnum.TRINO and datasource.use_ssl:
        url += "?ssl=true"
    return url


def connect(
    datasource: DataSource,
    *,
    user: str | None = None,
    password: str | None = None,
    driver: Driver | None = None,
) -> Any:
    """
    Open a connection to the external DB described by *datasource*.

    - user: when given, replaces the configured username, and *password*
      (possibly None) replaces the configured password.
    - driver: endpoint to use; default is the built-in driver for the url.
    """
    url = datasource_url(datasource)
    if user is None:
        user, password = datasource.username, datasource.password
    properties: dict[str, Any] = {}
    if user is not None:
        properties[USER_KEY] = user
    if password is not None:
        properties[PASSWORD_KEY] = password
    return (driver or get_driver(url)).connect(url, properties)
