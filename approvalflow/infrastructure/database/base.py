"""Declarative base of every ORM model"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
