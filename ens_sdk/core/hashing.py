"""
Namehash and labelhash utilities (EIP-137).

Plain labels are ENS-normalized (ENSIP-15) before hashing, so names that
differ only in case hash to the same node.

Labels whose text is unknown (recovered only as a hash, e.g. from
registry events) are written in encoded form: `[<64 hex chars>]`.
"""

from __future__ import annotations

import re
from typing import Tuple, Union

from ens.exceptions import InvalidName
from ens.utils import normalize_name
from eth_utils import encode_hex, keccak

from .exceptions import InvalidNameError
from .models import EMPTY_HASH

_ENCODED_LABELHASH = re.compile(r"^\[[0-9a-fA-F]{64}\]$")


def is_encoded_labelhash(label: str) -> bool:
    """True when `label` is shaped like an encoded labelhash (`[...]`, 66 chars)."""
    return isinstance(label, str) and label.startswith("[") and label.endswith("]") and len(label) == 66


def decode_labelhash(label: str) -> bytes:
    """Return the hash embedded in an encoded labelhash token."""
    if not is_encoded_labelhash(label) or not _ENCODED_LABELHASH.match(label):
        raise InvalidNameError(
            f"Expected encoded labelhash of the form [<64 hex chars>], got {label!r}"
        )
    return bytes.fromhex(label[1:-1])


def encode_labelhash(hash_value: Union[bytes, str]) -> str:
    """Encode a 32-byte labelhash as `[<hex>]`."""
    if isinstance(hash_value, str):
        digits = hash_value[2:] if hash_value.startswith("0x") else hash_value
        try:
            hash_value = bytes.fromhex(digits)
        except ValueError as exc:
            raise InvalidNameError(f"Labelhash must be hex, got {hash_value!r}") from exc
    if len(hash_value) != 32:
        raise InvalidNameError("Labelhash must be 32 bytes")
    return f"[{hash_value.hex()}]"


def normalize_label(label: str) -> str:
    """ENS-normalize a plain label (ENSIP-15); encoded labelhashes pass through unchanged."""
    if not isinstance(label, str):
        raise InvalidNameError(f"Label must be a string, got {type(label)!r}")
    if is_encoded_labelhash(label):
        return label
    try:
        return normalize_name(label)
    except InvalidName as exc:
        raise InvalidNameError(f"Label cannot be normalized: {label!r}") from exc


def labelhash(label: str) -> bytes:
    """keccak256 of a normalized label, or the embedded hash of an encoded labelhash."""
    label = normalize_label(label)
    if is_encoded_labelhash(label):
        return decode_labelhash(label)
    return keccak(text=label)


def namehash(name: str) -> bytes:
    """
    Compute the namehash of a dotted name.

    namehash("") is 32 zero bytes; otherwise labels are folded right to left:
    node = keccak256(node + labelhash(label)).
    """
    if not isinstance(name, str):
        raise InvalidNameError(f"Name must be a string, got {type(name)!r}")
    node = EMPTY_HASH
    if name == "":
        return node
    labels = name.split(".")
    if any(label == "" for label in labels):
        raise InvalidNameError(f"Name contains an empty label: {name!r}")
    for label in reversed(labels):
        node = keccak(node + labelhash(label))
    return node


def namehash_hex(name: str) -> str:
    return encode_hex(namehash(name))


def labelhash_hex(label: str) -> str:
    return encode_hex(labelhash(label))


def split_name(name: str) -> Tuple[str, str]:
    """Split "a.b.eth" into ("a", "b.eth"). A single label has parent ""."""
    if not isinstance(name, str) or name == "":
        raise InvalidNameError(f"Cannot split name {name!r}")
    label, _, parent = name.partition(".")
    if label == "":
        raise InvalidNameError(f"Name contains an empty label: {name!r}")
    return label, parent


def label_to_token_id(label: str) -> int:
    """ERC-721 token id of a second-level `.eth` name in the permanent registrar."""
    return int.from_bytes(labelhash(label), "big")


def reverse_name(address: str) -> str:
    """Reverse-resolution name for an address: `<lowercase hex>.addr.reverse`."""
    if not isinstance(address, str) or not address.lower().startswith("0x") or len(address) != 42:
        raise InvalidNameError(f"Not an address: {address!r}")
    return f"{address[2:].lower()}.addr.reverse"
