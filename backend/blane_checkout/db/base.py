"""Declarative base shared by all checkout tables."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
