"""PostgreSQL schema creation and versioning.

Mirrors sqlite_migrations with PostgreSQL types. Uses IF NOT EXISTS for
idempotent runs.
"""
from __future__ import annotations

import logging
from typing import Any

from storefront.db.sqlite_migrations import SCHEMA_VERSION

logger = logging.getLogger("storefront.db")

_TABLES = """
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied   TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS category (
    category_id        SERIAL PRIMARY KEY,
    title              TEXT NOT NULL,
    slug               TEXT NOT NULL UNIQUE,
    short_title        TEXT NOT NULL DEFAULT '',
    img_path           TEXT,
    parent_category_id INTEGER REFERENCES category(category_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_category_parent ON category(parent_category_id);

CREATE TABLE IF NOT EXISTS brand (
    brand_id    SERIAL PRIMARY KEY,
    title       TEXT NOT NULL,
    slug        TEXT NOT NULL UNIQUE,
    img_path    TEXT,
    description TEXT
);

CREATE TABLE IF NOT EXISTS product (
    product_id  SERIAL PRIMARY KEY,
    title       TEXT NOT NULL,
    description TEXT,
    category_id INTEGER NOT NULL REFERENCES category(category_id) ON DELETE CASCADE,
    brand_id    INTEGER NOT NULL REFERENCES brand(brand_id) ON DELETE CASCADE,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_product_category ON product(category_id);
CREATE INDEX IF NOT EXISTS idx_product_brand ON product(brand_id);

CREATE TABLE IF NOT EXISTS product_model (
    product_model_id SERIAL PRIMARY KEY,
    product_id       INTEGER NOT NULL REFERENCES product(product_id) ON DELETE CASCADE,
    slug             TEXT NOT NULL UNIQUE,
    article          TEXT NOT NULL UNIQUE,
    price            INTEGER NOT NULL,
    discount         SMALLINT,
    main_image_path  TEXT NOT NULL DEFAULT '',
    created_at       TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_model_product ON product_model(product_id);

CREATE TABLE IF NOT EXISTS product_model_img (
    product_img_id   SERIAL PRIMARY KEY,
    img_path         TEXT NOT NULL,
    product_model_id INTEGER NOT NULL REFERENCES product_model(product_model_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_model_img_model ON product_model_img(product_model_id);

CREATE TABLE IF NOT EXISTS option (
    option_id   SERIAL PRIMARY KEY,
    title       TEXT NOT NULL,
    slug        TEXT NOT NULL UNIQUE,
    for_catalog BOOLEAN NOT NULL DEFAULT TRUE
);

CREATE TABLE IF NOT EXISTS option_value (
    option_value_id SERIAL PRIMARY KEY,
    value           TEXT NOT NULL,
    info            TEXT,
    option_id       INTEGER NOT NULL REFERENCES option(option_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS product_model_option (
    product_model_option_id SERIAL PRIMARY KEY,
    product_model_id        INTEGER NOT NULL REFERENCES product_model(product_model_id) ON DELETE CASCADE,
    option_id               INTEGER NOT NULL REFERENCES option(option_id) ON DELETE CASCADE,
    option_value_id         INTEGER NOT NULL REFERENCES option_value(option_value_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_pmop_model ON product_model_option(product_model_id);

CREATE TABLE IF NOT EXISTS sizes (
    size_id    SERIAL PRIMARY KEY,
    size_value TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS model_sizes (
    model_size_id    SERIAL PRIMARY KEY,
    product_model_id INTEGER NOT NULL REFERENCES product_model(product_model_id) ON DELETE CASCADE,
    size_id          INTEGER NOT NULL REFERENCES sizes(size_id) ON DELETE CASCADE,
    literal_size     TEXT NOT NULL DEFAULT '',
    in_stock         INTEGER NOT NULL DEFAULT 0,
    UNIQUE (product_model_id, size_id)
);

CREATE TABLE IF NOT EXISTS users (
    user_id     SERIAL PRIMARY KEY,
    email       TEXT NOT NULL UNIQUE,
    avatar_path TEXT,
    first_name  TEXT,
    last_name   TEXT
);

CREATE TABLE IF NOT EXISTS feedback (
    feedback_id      SERIAL PRIMARY KEY,
    user_id          INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
    product_model_id INTEGER NOT NULL REFERENCES product_model(product_model_id) ON DELETE CASCADE,
    feedback_text    TEXT NOT NULL DEFAULT '',
    rate             SMALLINT NOT NULL,
    is_hidden        BOOLEAN NOT NULL DEFAULT FALSE,
    created_at       TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at       TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_feedback_model ON feedback(product_model_id, is_hidden);
"""


async def _apply(conn: Any) -> None:
    async with conn.transaction():
        await conn.execute(_TABLES)
        current_version = await conn.fetchval("SELECT MAX(version) FROM schema_version") or 0
        if current_version >= SCHEMA_VERSION:
            logger.info(f"Schema is up to date (version {current_version})")
            return
        await conn.execute("INSERT INTO schema_version (version) VALUES ($1)", SCHEMA_VERSION)
        logger.info(f"Migrations complete, schema version {SCHEMA_VERSION}")


async def run_migrations(db: Any) -> None:
    """Create all tables on an asyncpg Pool or Connection. Idempotent."""
    if hasattr(db, "acquire"):
        async with db.acquire() as conn:
            await _apply(conn)
        return
    await _apply(db)
