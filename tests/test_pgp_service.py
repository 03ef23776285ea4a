"""
Tests for PGP detection and the unimplemented PGP operations.
"""

import pytest

from provider_loader.config.models import PGPConfig
from provider_loader.pgp import PGPError, PGPNotImplementedError, PGPService
from provider_loader.pgp.service import packet_tag
from provider_loader.utils.error_handler import NotImplementedFeatureError


@pytest.fixture
def service():
    return PGPService(PGPConfig(
        private_key_path="/keys/private.asc",
        private_key_passphrase="pass",
        public_key_path="/keys/public.asc",
    ))


class TestPacketTag:
    """Test OpenPGP packet header decoding."""

    @pytest.mark.parametrize("first_byte, expected", [
        (0x85, 1),   # old format, public-key encrypted session key
        (0x8C, 3),   # old format, symmetric-key encrypted session key
        (0xC1, 1),   # new format
        (0xC3, 3),
        (0x3C, None),  # '<'
    ])
    def test_tag(self, first_byte, expected):
        assert packet_tag(first_byte) == expected


class TestDetection:
    """Test recognising encrypted payloads."""

    @pytest.mark.parametrize("name", ["providers.xml.pgp", "providers.XML.GPG", "providers.asc"])
    def test_by_extension(self, service, tmp_path, name):
        assert service.is_pgp_encrypted(tmp_path / name) is True

    def test_by_armour_header(self, service, tmp_path):
        path = tmp_path / "providers.xml"
        path.write_bytes(b"-----BEGIN PGP MESSAGE-----\n\nhQEMA...\n-----END PGP MESSAGE-----\n")
        assert service.is_pgp_encrypted(path) is True

    @pytest.mark.parametrize("header", [b"\x85\x01\x0c", b"\xc1\x5e\x03", b"\x8c\x0d\x04"])
    def test_by_binary_packet_header(self, service, tmp_path, header):
        path = tmp_path / "providers.xml"
        path.write_bytes(header + b"\x00" * 32)
        assert service.is_pgp_encrypted(path) is True

    def test_plain_xml(self, service, tmp_path):
        path = tmp_path / "providers.xml"
        path.write_text('<?xml version="1.0"?><providers/>', encoding="utf-8")
        assert service.is_pgp_encrypted(path) is False

    def test_empty_and_missing_files(self, service, tmp_path):
        empty = tmp_path / "empty.xml"
        empty.write_bytes(b"")
        assert service.is_pgp_encrypted(empty) is False
        assert service.is_pgp_encrypted(tmp_path / "missing.xml") is False


class TestUnimplementedOperations:
    """Test that PGP operations raise their not-implemented error."""

    @pytest.mark.parametrize("call, feature", [
        (lambda s: s.decrypt_file("in.pgp", "out.xml"), "PGP decryption"),
        (lambda s: s.verify_signature("in.xml"), "PGP signature verification"),
        (lambda s: s.encrypt_file("in.xml", "out.pgp", "/keys/public.asc"), "PGP encryption"),
        (lambda s: s.get_key_info("/keys/public.asc"), "PGP key info extraction"),
    ])
    def test_raises(self, service, call, feature):
        with pytest.raises(PGPNotImplementedError) as exc_info:
            call(service)

        assert exc_info.value.feature == feature
        assert str(exc_info.value) == f"{feature} not yet implemented"
        assert isinstance(exc_info.value, PGPError)
        assert isinstance(exc_info.value, NotImplementedFeatureError)
