"""Database schema creation and versioning.

All CREATE TABLE statements for the catalog store.
Uses IF NOT EXISTS for idempotent runs.
"""
from __future__ import annotations

import logging

import aiosqlite

logger = logging.getLogger("storefront.db")

SCHEMA_VERSION = 3

_TABLES = """
-- ── Schema version tracking ────────────────────────────────────────
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied   TEXT NOT NULL DEFAULT (datetime('now'))
);

-- ── 1. Category hierarchy (self-referencing) ───────────────────────
CREATE TABLE IF NOT EXISTS category (
    category_id        INTEGER PRIMARY KEY AUTOINCREMENT,
    title              TEXT NOT NULL,
    slug               TEXT NOT NULL UNIQUE,
    short_title        TEXT NOT NULL DEFAULT '',
    img_path           TEXT,
    parent_category_id INTEGER REFERENCES category(category_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_category_parent ON category(parent_category_id);

-- ── 2. Brands and products ─────────────────────────────────────────
CREATE TABLE IF NOT EXISTS brand (
    brand_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    title       TEXT NOT NULL,
    slug        TEXT NOT NULL UNIQUE,
    img_path    TEXT,
    description TEXT
);

CREATE TABLE IF NOT EXISTS product (
    product_id  INTEGER PRIMARY KEY AUTOINCREMENT,
    title       TEXT NOT NULL,
    description TEXT,
    category_id INTEGER NOT NULL REFERENCES category(category_id) ON DELETE CASCADE,
    brand_id    INTEGER NOT NULL REFERENCES brand(brand_id) ON DELETE CASCADE,
    created_at  TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_product_category ON product(category_id);
CREATE INDEX IF NOT EXISTS idx_product_brand ON product(brand_id);

-- ── 3. Product models (sellable variants) ──────────────────────────
CREATE TABLE IF NOT EXISTS product_model (
    product_model_id INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id       INTEGER NOT NULL REFERENCES product(product_id) ON DELETE CASCADE,
    slug             TEXT NOT NULL UNIQUE,
    article          TEXT NOT NULL UNIQUE,
    price            INTEGER NOT NULL,
    discount         INTEGER,
    main_image_path  TEXT NOT NULL DEFAULT '',
    created_at       TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_model_product ON product_model(product_id);

CREATE TABLE IF NOT EXISTS product_model_img (
    product_img_id   INTEGER PRIMARY KEY AUTOINCREMENT,
    img_path         TEXT NOT NULL,
    product_model_id INTEGER NOT NULL REFERENCES product_model(product_model_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_model_img_model ON product_model_img(product_model_id);

-- ── 4. Options (free-form facets) ──────────────────────────────────
CREATE TABLE IF NOT EXISTS option (
    option_id   INTEGER PRIMARY KEY AUTOINCREMENT,
    title       TEXT NOT NULL,
    slug        TEXT NOT NULL UNIQUE,
    for_catalog INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS option_value (
    option_value_id INTEGER PRIMARY KEY AUTOINCREMENT,
    value           TEXT NOT NULL,
    info            TEXT,
    option_id       INTEGER NOT NULL REFERENCES option(option_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS product_model_option (
    product_model_option_id INTEGER PRIMARY KEY AUTOINCREMENT,
    product_model_id        INTEGER NOT NULL REFERENCES product_model(product_model_id) ON DELETE CASCADE,
    option_id               INTEGER NOT NULL REFERENCES option(option_id) ON DELETE CASCADE,
    option_value_id         INTEGER NOT NULL REFERENCES option_value(option_value_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_pmop_model ON product_model_option(product_model_id);

-- ── 5. Sizes ───────────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS sizes (
    size_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    size_value TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS model_sizes (
    model_size_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    product_model_id INTEGER NOT NULL REFERENCES product_model(product_model_id) ON DELETE CASCADE,
    size_id          INTEGER NOT NULL REFERENCES sizes(size_id) ON DELETE CASCADE,
    literal_size     TEXT NOT NULL DEFAULT '',
    in_stock         INTEGER NOT NULL DEFAULT 0,
    UNIQUE (product_model_id, size_id)
);

-- ── 6. Users and feedback ──────────────────────────────────────────
CREATE TABLE IF NOT EXISTS users (
    user_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    email       TEXT NOT NULL UNIQUE,
    avatar_path TEXT,
    first_name  TEXT,
    last_name   TEXT
);

CREATE TABLE IF NOT EXISTS feedback (
    feedback_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id          INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
    product_model_id INTEGER NOT NULL REFERENCES product_model(product_model_id) ON DELETE CASCADE,
    feedback_text    TEXT NOT NULL DEFAULT '',
    rate             INTEGER NOT NULL,
    is_hidden        INTEGER NOT NULL DEFAULT 0,
    created_at       TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_feedback_model ON feedback(product_model_id, is_hidden);
"""


async def run_migrations(db: aiosqlite.Connection) -> None:
    """Create all tables. Idempotent."""
    try:
        async with db.execute("SELECT MAX(version) FROM schema_version") as cur:
            row = await cur.fetchone()
            current_version = row[0] if row and row[0] else 0
    except aiosqlite.Error:
        current_version = 0

    if current_version >= SCHEMA_VERSION:
        logger.info(f"Schema is up to date (version {current_version})")
        return

    logger.info(f"Running migrations: {current_version} → {SCHEMA_VERSION}")

    await db.executescript(_TABLES)

    await db.execute(
        "INSERT INTO schema_version (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )
    await db.commit()
    logger.info(f"Migrations complete, schema version {SCHEMA_VERSION}")
