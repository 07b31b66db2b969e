"""
Declarative base.

All models inherit from Base so metadata is shared by create_all and Alembic.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
