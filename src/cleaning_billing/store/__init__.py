"""Record store contract and its SQLAlchemy implementation."""

from cleaning_billing.store.base import QueryResult, RecordStore, Row
from cleaning_billing.store.filters import (
    UNSET,
    Between,
    Contains,
    Eq,
    IsAbsent,
    IsPresent,
    Predicate,
    Sort,
    Unset,
)
from cleaning_billing.store.sqlalchemy_store import SqlAlchemyRecordStore

__all__ = [
    "QueryResult",
    "RecordStore",
    "Row",
    "SqlAlchemyRecordStore",
    "UNSET",
    "Unset",
    "Between",
    "Contains",
    "Eq",
    "IsAbsent",
    "IsPresent",
    "Predicate",
    "Sort",
]
