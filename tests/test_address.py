"""Tests for the address and hex codec."""

import pytest

from tapbot.core.address import Address, from_hex, parse_address, to_hex

CANONICAL = "0x742d35cc6634c0532925a3b844bc9e7595f8fe00"


class TestFromHex:
    """Tests for from_hex."""

    def test_with_prefix(self):
        assert from_hex("0x0a0b") == b"\x0a\x0b"

    def test_with_upper_prefix(self):
        assert from_hex("0X0a0b") == b"\x0a\x0b"

    def test_without_prefix(self):
        assert from_hex("0a0b") == b"\x0a\x0b"

    def test_odd_length_padded(self):
        """Odd length strings get a leading zero nibble."""
        assert from_hex("0xabc") == b"\x0a\xbc"

    def test_empty(self):
        assert from_hex("0x") == b""

    def test_invalid_characters(self):
        with pytest.raises(ValueError):
            from_hex("0xzz")

    def test_embedded_whitespace_rejected(self):
        with pytest.raises(ValueError):
            from_hex("0a\t0b")


class TestAddress:
    """Tests for the Address type."""

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError, match="20 bytes"):
            Address(b"\x01" * 19)

    def test_from_bytes_pads_short_input(self):
        address = Address.from_bytes(b"\x01")
        assert address.raw == b"\x00" * 19 + b"\x01"

    def test_from_bytes_keeps_trailing_bytes(self):
        address = Address.from_bytes(b"\xff" * 4 + b"\x02" * 20)
        assert address.raw == b"\x02" * 20

    def test_str_is_prefixed_lowercase(self):
        address = Address(bytes.fromhex(CANONICAL[2:]))
        assert str(address) == CANONICAL

    def test_is_zero(self):
        assert Address.from_bytes(b"").is_zero
        assert not Address.from_bytes(b"\x01").is_zero

    def test_hashable(self):
        """Equal addresses collapse in sets and dict keys."""
        a = Address.from_bytes(b"\x01")
        b = Address.from_bytes(b"\x00\x01")
        assert len({a, b}) == 1


class TestParseAddress:
    """Tests for parse_address."""

    @pytest.mark.parametrize(
        "text",
        [
            CANONICAL,
            CANONICAL.upper().replace("0X", "0x"),
            "0X" + CANONICAL[2:],
            CANONICAL[2:],
            "0x742D35Cc6634C0532925a3b844Bc9e7595f8fE00",
        ],
    )
    def test_spellings_collapse(self, text):
        """Prefix and case do not change the parsed address."""
        address = parse_address(text)
        assert address is not None
        assert str(address) == CANONICAL

    def test_zero_address_rejected(self):
        assert parse_address("0x" + "0" * 40) is None

    def test_empty_rejected(self):
        assert parse_address("0x") is None

    def test_garbage_rejected(self):
        assert parse_address("0xnot-an-address") is None

    def test_short_address_padded(self):
        address = parse_address("0x1")
        assert str(address) == "0x" + "0" * 39 + "1"


def test_to_hex():
    assert to_hex(b"\x00\xff") == "0x00ff"
