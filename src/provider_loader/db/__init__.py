"""Database module for provider persistence."""

from .repository import ProviderRepository, DatabaseError, DatabaseNotImplementedError

__all__ = ['ProviderRepository', 'DatabaseError', 'DatabaseNotImplementedError']
