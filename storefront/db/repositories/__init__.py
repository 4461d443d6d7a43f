"""Repository package for database access."""

from .categories import SqliteCategoryRepository
from .catalog import SqliteCatalogRepository
from .feedback import SqliteFeedbackRepository

__all__ = [
    "SqliteCategoryRepository",
    "SqliteCatalogRepository",
    "SqliteFeedbackRepository",
]
