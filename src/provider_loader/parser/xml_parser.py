"""Parser for provider extract XML files."""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from lxml import etree

from ..config.models import ProviderRecord
from ..utils.error_handler import NotImplementedFeatureError


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class XmlParsingError(Exception):
    """Base exception for XML parsing errors."""
    pass


class XmlParsingNotImplementedError(NotImplementedFeatureError, XmlParsingError):
    """Raised by parser operations that are not implemented yet."""
    pass


class ProviderXmlParser:
    """Checks and parses provider extract XML files.

    Only the well-formedness check is implemented; parsing, schema
    validation and metadata extraction raise
    :class:`XmlParsingNotImplementedError`.
    """

    def __init__(self):
        logger.info("Provider XML Parser initialized (parsing not implemented)")

    def is_well_formed(self, xml_file: PathLike) -> bool:
        """Check whether a file is well-formed XML.

        The document is streamed so large extracts are never held in memory.
        Entity resolution and network access are disabled.

        Args:
            xml_file: File to check

        Returns:
            True if the file exists and parses without syntax errors
        """
        path = Path(xml_file)
        logger.debug(f"Checking if XML file is well-formed: {path}")

        if not path.is_file():
            return False

        try:
            for _, element in etree.iterparse(str(path), events=('end',),
                                              resolve_entities=False, no_network=True,
                                              huge_tree=True):
                element.clear()
        except (etree.XMLSyntaxError, OSError) as e:
            logger.warning(f"File {path.name} is not well-formed XML: {e}")
            return False

        return True

    def parse_provider_xml(self, xml_file: PathLike) -> ProviderRecord:
        """Parse a provider extract into a provider record.

        Raises:
            XmlParsingNotImplementedError: Always
        """
        logger.warning("XML parsing not yet implemented - stub method called")
        logger.info(f"Would parse XML file: {Path(xml_file).resolve()}")
        raise XmlParsingNotImplementedError("XML parsing")

    def validate_xml(self, xml_file: PathLike, schema_file: Optional[PathLike] = None) -> bool:
        """Validate a file against an XSD schema.

        Raises:
            XmlParsingNotImplementedError: Always
        """
        logger.warning("XML validation not yet implemented - stub method called")
        logger.info(f"Would validate XML file: {Path(xml_file).resolve()}")
        raise XmlParsingNotImplementedError("XML validation")

    def extract_metadata(self, xml_file: PathLike) -> Dict[str, str]:
        """Extract record counts and creation timestamps.

        Raises:
            XmlParsingNotImplementedError: Always
        """
        logger.warning("XML metadata extraction not yet implemented - stub method called")
        logger.info(f"Would extract metadata from: {Path(xml_file).resolve()}")
        raise XmlParsingNotImplementedError("XML metadata extraction")
