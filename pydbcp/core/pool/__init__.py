"""
Connection acquisition for external DBs.

Factories (DriverConnectionFactory, DataSourceConnectionFactory,
DriverManagerConnectionFactory) open one connection per ``acquire()``;
drivers wrap psycopg, pymysql and trino; PoolManager is a small pool on
top of the factories.
"""

from .connect import connect, datasource_url
from .datasource import BasicDataSource, ConnectionSource
from .drivers import (
    DEFAULT_DRIVERS,
    Driver,
    MySQLDriver,
    PostgresDriver,
    TrinoDriver,
    get_driver,
)
from .factory import (
    ConnectionFactory,
    DataSourceConnectionFactory,
    DriverConnectionFactory,
    DriverManagerConnectionFactory,
)
from .manager import PoolManager, get_pool_manager

__all__ = [
    "connect",
    "datasource_url",
    "BasicDataSource",
    "ConnectionSource",
    "DEFAULT_DRIVERS",
    "Driver",
    "MySQLDriver",
    "PostgresDriver",
    "TrinoDriver",
    "get_driver",
    "ConnectionFactory",
    "DataSourceConnectionFactory",
    "DriverConnectionFactory",
    "DriverManagerConnectionFactory",
    "PoolManager",
    "get_pool_manager",
]
