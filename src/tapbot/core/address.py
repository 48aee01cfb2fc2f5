"""Address and hex codec for user-entered identifiers.

Users type addresses and transaction ids by hand, so the codec is lenient
about spelling (optional ``0x``/``0X`` prefix, odd length, mixed case) and
strict about the result: every spelling of one address collapses to the
same canonical ``Address``.
"""

import re
from dataclasses import dataclass

ADDRESS_LENGTH = 20

# "0x" + 40 hex characters
ADDRESS_TEXT_LENGTH = 2 + 2 * ADDRESS_LENGTH

HEX_PATTERN = re.compile(r"[0-9a-fA-F]*")


def from_hex(text: str) -> bytes:
    """Decode a hex string that may carry a ``0x`` prefix.

    Parameters
    ----------
    text : str
        Hex string, optionally ``0x``/``0X`` prefixed, of any length.

    Returns
    -------
    bytes
        Decoded bytes. An odd-length string is left-padded with one zero
        nibble before decoding.

    Raises
    ------
    ValueError
        If the string contains non-hex characters.
    """
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    if len(text) % 2 == 1:
        text = "0" + text
    # bytes.fromhex tolerates embedded whitespace, user input must not
    if not HEX_PATTERN.fullmatch(text):
        raise ValueError(f"Invalid hex string: {text!r}")
    return bytes.fromhex(text)


def to_hex(data: bytes) -> str:
    """Encode bytes as a ``0x``-prefixed lowercase hex string."""
    return "0x" + data.hex()


@dataclass(frozen=True)
class Address:
    """Fixed-width account address.

    Attributes
    ----------
    raw : bytes
        Exactly ``ADDRESS_LENGTH`` bytes.
    """

    raw: bytes

    def __post_init__(self):
        if len(self.raw) != ADDRESS_LENGTH:
            raise ValueError(f"Address must be {ADDRESS_LENGTH} bytes, got {len(self.raw)}")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Address":
        """Build an address from arbitrary bytes.

        Longer input keeps its trailing bytes, shorter input is left-padded
        with zeros.
        """
        data = data[-ADDRESS_LENGTH:]
        return cls(data.rjust(ADDRESS_LENGTH, b"\x00"))

    @property
    def is_zero(self) -> bool:
        """True for the all-zero address."""
        return not any(self.raw)

    def __str__(self) -> str:
        return to_hex(self.raw)


def parse_address(text: str) -> Address | None:
    """Parse a user-entered address.

    Parameters
    ----------
    text : str
        Address text, with or without ``0x`` prefix.

    Returns
    -------
    Address | None
        The canonical address, or None if the text does not decode or
        decodes to the zero address.
    """
    try:
        address = Address.from_bytes(from_hex(text))
    except ValueError:
        return None
    if address.is_zero:
        return None
    return address
