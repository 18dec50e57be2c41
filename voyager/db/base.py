"""Declarative base shared by the dashboard's ORM models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Models subclass this so `Base.metadata` knows every table."""

    pass
