from blane_checkout.db.base import Base
from blane_checkout.db.session import SessionLocal, create_tables, engine, make_engine
from blane_checkout.db.tables import ALL_TABLE_NAMES

__all__ = ["engine", "make_engine", "create_tables", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
