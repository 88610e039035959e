"""
Connection configuration models.

DataSource describes one pre-configured external database: product type,
address and default credentials. BasicDataSource (core.pool.datasource)
opens connections from it.
"""

from enum import Enum

from pydantic import model_validator
from sqlmodel import Field, SQLModel


class ProductTypeEnum(str, Enum):
    """Supported database product types (postgres, mysql, trino)."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    TRINO = "trino"


_DEFAULT_PORTS = {
    ProductTypeEnum.POSTGRES: 5432,
    ProductTypeEnum.MYSQL: 3306,
    ProductTypeEnum.TRINO: 8080,
}


def default_port(product_type: ProductTypeEnum) -> int:
    return _DEFAULT_PORTS[product_type]


class DataSource(SQLModel):
    """Connection parameters for one external database."""

    name: str = Field(default="", max_length=255)
    product_type: ProductTypeEnum
    host: str = Field(..., min_length=1, max_length=255)
    port: int | None = Field(default=None, ge=1, le=65535)
    database: str = Field(..., min_length=1, max_length=255)
    username: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, max_length=512)
    use_ssl: bool = Field(
        default=False, description="For Trino: use HTTPS. When True, password required."
    )

    @model_validator(mode="after")
    def trino_ssl_requires_password(self) -> "DataSource":
        if (
            self.product_type == ProductTypeEnum.TRINO
            and self.use_ssl
            and not (self.password and str(self.password).strip())
        ):
            raise ValueError("Password is required for Trino when using SSL/HTTPS.")
        return self

    @property
    def effective_port(self) -> int:
        return self.port or default_port(self.product_type)

    def __repr__(self) -> str:
        return (
            f"DataSource(name={self.name!r}, product_type={self.product_type.value}, "
            f"host={self.host!r}, port={self.effective_port}, database={self.database!r}, "
            f"username={self.username!r})"
        )
