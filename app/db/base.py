# app/db/base.py
from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Deterministic constraint names keep future migrations diffable.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """
    Declarative base for accounts, rules and meetings.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# Models must be imported after Base so Base.metadata knows every table.
from app.models.account import Account  # noqa: E402,F401
from app.models.rule import Rule  # noqa: E402,F401
from app.models.meeting import Meeting  # noqa: E402,F401
