#mpms/models/base.py
"""
Базовый класс для всех ORM-моделей проекта.

Использовать как Base при описании моделей:
    from mpms.models.base import Base
"""
import enum
from typing import Type

from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def enum_column_type(enum_cls: Type[enum.Enum], name: str) -> SAEnum:
    """Enum stored as its string value (VARCHAR + CHECK), loaded back as the enum member."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )
