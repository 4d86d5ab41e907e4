"""Bech32 encoding and address parsing."""

from __future__ import annotations

from collections.abc import Iterable

from .errors import AddressError

ACCOUNT_PREFIX = "cosmos"
VALIDATOR_PREFIX = "cosmosvaloper"
MAX_ADDRESS_LENGTH = 255
MAX_BECH32_LENGTH = 1023

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_INDEX = {char: value for value, char in enumerate(_CHARSET)}
_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_CHECKSUM_LENGTH = 6


def _polymod(values: Iterable[int]) -> int:
    checksum = 1
    for value in values:
        top = checksum >> 25
        checksum = ((checksum & 0x1FFFFFF) << 5) ^ value
        for bit, generator in enumerate(_GENERATOR):
            if (top >> bit) & 1:
                checksum ^= generator
    return checksum


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(char) >> 5 for char in hrp] + [0] + [ord(char) & 31 for char in hrp]


def _create_checksum(hrp: str, data: list[int]) -> list[int]:
    polymod = _polymod(_hrp_expand(hrp) + data + [0] * _CHECKSUM_LENGTH) ^ 1
    return [(polymod >> 5 * (5 - shift)) & 31 for shift in range(_CHECKSUM_LENGTH)]


def _convert_bits(data: Iterable[int], from_bits: int, to_bits: int, pad: bool) -> list[int]:
    acc = 0
    bits = 0
    out: list[int] = []
    max_value = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value >> from_bits:
            raise AddressError(f"invalid data range: {value}")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((acc >> bits) & max_value)
    if pad:
        if bits:
            out.append((acc << (to_bits - bits)) & max_value)
    elif bits >= from_bits:
        raise AddressError("invalid incomplete group")
    elif (acc << (to_bits - bits)) & max_value:
        raise AddressError("invalid non-zero padding")
    return out


def _check_hrp(hrp: str) -> None:
    if not hrp:
        raise AddressError("human-readable part is empty")
    if any(not 33 <= ord(char) <= 126 for char in hrp):
        raise AddressError(f"invalid character in human-readable part: {hrp!r}")


def bech32_encode(hrp: str, data: bytes) -> str:
    """Encode bytes under a human-readable prefix as a bech32 string."""
    _check_hrp(hrp)
    hrp = hrp.lower()
    values = _convert_bits(data, 8, 5, True)
    encoded = hrp + "1" + "".join(_CHARSET[v] for v in values + _create_checksum(hrp, values))
    if len(encoded) > MAX_BECH32_LENGTH:
        raise AddressError(f"encoded string too long: {len(encoded)}")
    return encoded


def bech32_decode(address: str) -> tuple[str, bytes]:
    """Decode a bech32 string into its lower-case prefix and its bytes."""
    if len(address) > MAX_BECH32_LENGTH:
        raise AddressError(f"string too long: {len(address)}")
    if any(not 33 <= ord(char) <= 126 for char in address):
        raise AddressError("invalid character in string")
    lowered = address.lower()
    if address != lowered and address != address.upper():
        raise AddressError("string not all lowercase or all uppercase")
    separator = lowered.rfind("1")
    if separator < 1 or separator + _CHECKSUM_LENGTH + 1 > len(lowered):
        raise AddressError("invalid separator position")
    hrp, data_part = lowered[:separator], lowered[separator + 1 :]
    try:
        values = [_CHARSET_INDEX[char] for char in data_part]
    except KeyError as exc:
        raise AddressError(f"invalid character in data part: {exc.args[0]!r}") from None
    if _polymod(_hrp_expand(hrp) + values) != 1:
        raise AddressError("invalid checksum")
    return hrp, bytes(_convert_bits(values[:-_CHECKSUM_LENGTH], 5, 8, False))


def _address_from_bech32(address: str, prefix: str) -> bytes:
    if not address.strip():
        raise AddressError("empty address string is not allowed")
    hrp, data = bech32_decode(address)
    if hrp != prefix:
        raise AddressError(f"invalid Bech32 prefix; expected {prefix}, got {hrp}")
    if not data:
        raise AddressError("addresses cannot be empty")
    if len(data) > MAX_ADDRESS_LENGTH:
        raise AddressError(
            f"address max length is {MAX_ADDRESS_LENGTH}, got {len(data)}"
        )
    return data


def acc_address_from_bech32(address: str) -> bytes:
    """Parse an account address and return its bytes."""
    return _address_from_bech32(address, ACCOUNT_PREFIX)


def val_address_from_bech32(address: str) -> bytes:
    """Parse a validator operator address and return its bytes."""
    return _address_from_bech32(address, VALIDATOR_PREFIX)