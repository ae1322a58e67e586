"""Query execution and result materialization."""

from .materializer import ResultMaterializer, ResultSet, materialize
from .results import LabeledResultSet, PositionalResultSet
from .runner import QueryRunner

__all__ = [
    "LabeledResultSet",
    "PositionalResultSet",
    "QueryRunner",
    "ResultMaterializer",
    "ResultSet",
    "materialize",
]
