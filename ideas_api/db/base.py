"""Declarative base, kept apart from the engine so metadata imports need no settings."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
