"""Controller package for the provider loader."""

from .main_controller import MainController, ProcessingError

__all__ = ['MainController', 'ProcessingError']
