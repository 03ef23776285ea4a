"""Parser module for provider extract XML."""

from .xml_parser import ProviderXmlParser, XmlParsingError, XmlParsingNotImplementedError

__all__ = ['ProviderXmlParser', 'XmlParsingError', 'XmlParsingNotImplementedError']
