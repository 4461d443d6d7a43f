"""Repository factory to abstract DB backend (SQLite vs Postgres)."""
from __future__ import annotations

from typing import Any

import aiosqlite

from storefront.db.repositories.catalog import SqliteCatalogRepository
from storefront.db.repositories.categories import SqliteCategoryRepository
from storefront.db.repositories.feedback import SqliteFeedbackRepository


def get_category_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteCategoryRepository(db)
    from storefront.db.repositories.postgres.categories import PostgresCategoryRepository
    return PostgresCategoryRepository(db)


def get_catalog_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteCatalogRepository(db)
    from storefront.db.repositories.postgres.catalog import PostgresCatalogRepository
    return PostgresCatalogRepository(db)


def get_feedback_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteFeedbackRepository(db)
    from storefront.db.repositories.postgres.feedback import PostgresFeedbackRepository
    return PostgresFeedbackRepository(db)
