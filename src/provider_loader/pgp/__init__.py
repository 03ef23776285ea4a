"""PGP module for encrypted provider extracts."""

from .service import PGPService, PGPError, PGPNotImplementedError

__all__ = ['PGPService', 'PGPError', 'PGPNotImplementedError']
