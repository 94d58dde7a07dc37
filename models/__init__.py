"""Models package."""

from models.base import Base
from models.employee import Employee

__all__ = [
    "Base",
    "Employee",
]
