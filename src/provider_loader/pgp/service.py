"""PGP handling for encrypted provider extracts.

Only detection of encrypted payloads is implemented. Decryption, encryption,
signature verification and key inspection raise
:class:`PGPNotImplementedError`.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..config.models import PGPConfig
from ..utils.error_handler import NotImplementedFeatureError


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

PGP_EXTENSIONS = ('.pgp', '.gpg', '.asc')
ARMOR_HEADER = b'-----BEGIN PGP MESSAGE-----'

# OpenPGP packet tags that open an encrypted message
PUBLIC_KEY_ENCRYPTED_SESSION_KEY = 1
SYMMETRIC_KEY_ENCRYPTED_SESSION_KEY = 3


class PGPError(Exception):
    """Base exception for PGP operations."""
    pass


class PGPNotImplementedError(NotImplementedFeatureError, PGPError):
    """Raised by PGP operations that are not implemented yet."""
    pass


def packet_tag(first_byte: int) -> Optional[int]:
    """Return the OpenPGP packet tag encoded in a header byte, or None.

    Bit 7 is always set. New-format headers (bit 6 set) carry the tag in the
    low six bits, old-format headers in bits 5-2.
    """
    if not first_byte & 0x80:
        return None
    if first_byte & 0x40:
        return first_byte & 0x3F
    return (first_byte >> 2) & 0x0F


class PGPService:
    """PGP operations on provider extract files."""

    def __init__(self, config: PGPConfig):
        self.private_key_path = config.private_key_path
        self.private_key_passphrase = config.private_key_passphrase
        self.public_key_path = config.public_key_path

        logger.info("PGP Service initialized (decryption not implemented)")

    def is_pgp_encrypted(self, file_path: PathLike) -> bool:
        """Check whether a file looks like a PGP encrypted message.

        A file counts as encrypted when it has a ``.pgp``, ``.gpg`` or
        ``.asc`` extension, starts with an ASCII armour message header, or
        starts with a binary encrypted-session-key packet.

        Args:
            file_path: File to inspect

        Returns:
            True if the file appears to be PGP encrypted
        """
        path = Path(file_path)
        logger.debug(f"Checking if file is PGP encrypted: {path}")

        if path.name.lower().endswith(PGP_EXTENSIONS):
            return True

        try:
            with open(path, 'rb') as f:
                head = f.read(64)
        except OSError as e:
            logger.debug(f"Could not read {path} for PGP detection: {e}")
            return False

        if not head:
            return False

        if head.lstrip().startswith(ARMOR_HEADER):
            return True

        return packet_tag(head[0]) in (PUBLIC_KEY_ENCRYPTED_SESSION_KEY, SYMMETRIC_KEY_ENCRYPTED_SESSION_KEY)

    def decrypt_file(self, encrypted_file: PathLike, output_file: PathLike) -> None:
        """Decrypt a PGP encrypted file into ``output_file``.

        Raises:
            PGPNotImplementedError: Always
        """
        logger.warning("PGP decryption not yet implemented - stub method called")
        logger.info(f"Would decrypt: {Path(encrypted_file).resolve()} -> {Path(output_file).resolve()}")
        raise PGPNotImplementedError("PGP decryption")

    def verify_signature(self, signed_file: PathLike, signature_file: Optional[PathLike] = None) -> bool:
        """Verify an inline or detached signature against the public key.

        Raises:
            PGPNotImplementedError: Always
        """
        logger.warning("PGP signature verification not yet implemented - stub method called")
        logger.info(f"Would verify signature for: {Path(signed_file).resolve()}")
        raise PGPNotImplementedError("PGP signature verification")

    def encrypt_file(self, input_file: PathLike, output_file: PathLike, recipient_public_key_file: PathLike) -> None:
        """Encrypt a file for a recipient.

        Raises:
            PGPNotImplementedError: Always
        """
        logger.warning("PGP encryption not yet implemented - stub method called")
        logger.info(f"Would encrypt: {Path(input_file).resolve()} -> {Path(output_file).resolve()}")
        raise PGPNotImplementedError("PGP encryption")

    def get_key_info(self, key_file: PathLike) -> str:
        """Describe the key stored in ``key_file``.

        Raises:
            PGPNotImplementedError: Always
        """
        logger.warning("PGP key info extraction not yet implemented - stub method called")
        logger.info(f"Would analyze key file: {Path(key_file).resolve()}")
        raise PGPNotImplementedError("PGP key info extraction")
