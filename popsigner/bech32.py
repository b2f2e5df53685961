"""Bech32 encoding (BIP-173) for address strings."""

from collections.abc import Iterable, Sequence

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"

GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)

CHECKSUM_LENGTH = 6


def convert_bits(
    data: Iterable[int],
    from_bits: int,
    to_bits: int,
    pad: bool = True,
) -> list[int]:
    """Regroup a sequence of ``from_bits``-wide values into ``to_bits``-wide values.

    Groups are emitted most-significant bit first. When ``pad`` is set the
    trailing partial group is filled with zero bits on the right; otherwise
    leftover bits must be zero padding or a ValueError is raised.

    Args:
        data: Input values, each smaller than ``2 ** from_bits``
        from_bits: Width of the input values
        to_bits: Width of the output values
        pad: Whether to emit a trailing partial group

    Returns:
        The regrouped values

    Raises:
        ValueError: If an input value is out of range or the padding is invalid

    """
    acc = 0
    bits = 0
    result: list[int] = []
    max_value = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1

    for value in data:
        if value < 0 or value >> from_bits:
            raise ValueError(f"value {value} does not fit in {from_bits} bits")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            result.append((acc >> bits) & max_value)

    if pad:
        if bits:
            result.append((acc << (to_bits - bits)) & max_value)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & max_value):
        raise ValueError("invalid padding in bit conversion")

    return result


def hrp_expand(hrp: str) -> list[int]:
    """Expand the human-readable prefix into the checksum seed values."""
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def polymod(values: Iterable[int]) -> int:
    """Compute the BIP-173 checksum polynomial over ``values``."""
    chk = 1
    for value in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ value
        for i, generator in enumerate(GENERATORS):
            if (top >> i) & 1:
                chk ^= generator
    return chk


def create_checksum(hrp: str, data: Sequence[int]) -> list[int]:
    """Return the six 5-bit checksum values for ``hrp`` and 5-bit ``data``."""
    values = hrp_expand(hrp) + list(data) + [0] * CHECKSUM_LENGTH
    mod = polymod(values) ^ 1
    return [(mod >> (5 * (CHECKSUM_LENGTH - 1 - i))) & 31 for i in range(CHECKSUM_LENGTH)]


def encode(hrp: str, data: bytes) -> str:
    """Encode raw bytes as a bech32 string with the given prefix.

    Args:
        hrp: Human-readable prefix (e.g. ``"celestia"``)
        data: Bytes to encode, may be empty

    Returns:
        ``hrp + "1" + data characters + 6 checksum characters``

    """
    groups = convert_bits(data, 8, 5)
    checksum = create_checksum(hrp, groups)
    return hrp + "1" + "".join(CHARSET[g] for g in groups + checksum)
