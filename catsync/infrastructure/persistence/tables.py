"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)
from sqlalchemy.types import JSON

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# PRODUCT CACHE TABLE (local replica of the upstream catalog)
# ============================================================================
product_cache_table = Table(
    "product_cache",
    metadata,
    Column("id", String, primary_key=True),  # Upstream entity id
    Column("title", String, nullable=False),
    Column("description", Text, nullable=False),
    Column("category_id", String, nullable=True),
    Column("category", String, nullable=True),  # Resolved category name
    Column("price", Float, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("image", String, nullable=True),
    Column("image_ref", String, nullable=True),
    Column("seller", JSON, nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),  # Upstream version
)

Index("idx_product_cache_category_id", product_cache_table.c.category_id)
Index("idx_product_cache_updated_at", product_cache_table.c.updated_at)
