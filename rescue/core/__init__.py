"""
Core Package
============
Configuration, logging and error taxonomy.
"""

from .config import settings
from .errors import ConflictError, NotFoundError, RescueError, StorageError, ValidationError

__all__ = [
    'settings',
    'RescueError',
    'ValidationError',
    'NotFoundError',
    'ConflictError',
    'StorageError',
]
