"""SQLAlchemy Declarative Base — one MetaData for models, tests and migrations.

Invariants:
    - Every model inherits from Base; Base.metadata is what alembic and create_all see
    - Index and unique names follow NAMING_CONVENTION, matching the migrations

Design Decisions:
    - Separate file for Base: models import it without importing each other
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
