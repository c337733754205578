"""
EIP-1577 content hash codec.

A contenthash is `varint(namespace codec) || payload`:
- ipfs-ns (0xe3): CIDv1 bytes (`0x01 || varint(codec) || multihash`)
- ipns-ns (0xe5): CIDv1 bytes with the libp2p-key codec (or an identity
  multihash holding a DNSLink name)
- swarm-ns (0xe4): CIDv1 with swarm-manifest codec and keccak-256 multihash
- onion (0x01bc) / onion3 (0x01bd): the utf-8 onion address
"""

from __future__ import annotations

import base64
import re
from typing import Tuple

import base58

from .exceptions import InvalidNameError

IPFS_NS = 0xE3
IPNS_NS = 0xE5
SWARM_NS = 0xE4
ONION = 0x01BC
ONION3 = 0x01BD

CID_V1 = 0x01
DAG_PB = 0x70
LIBP2P_KEY = 0x72
SWARM_MANIFEST = 0xFA
IDENTITY = 0x00
SHA2_256 = 0x12
KECCAK_256 = 0x1B

_RAW_CONTENT = re.compile(r"^0x[0-9a-fA-F]{64}$")
_HEX_32 = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
_DNS_NAME = re.compile(r"^(?=.{1,253}$)([a-zA-Z0-9-]+\.)+[a-zA-Z0-9-]+$")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _varint_encode(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _varint_decode(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Return (value, next offset)."""
    value = 0
    shift = 0
    while offset < len(data):
        byte = data[offset]
        value |= (byte & 0x7F) << shift
        offset += 1
        if not byte & 0x80:
            return value, offset
        shift += 7
    raise InvalidNameError("Truncated varint in contenthash")


def is_raw_content_hash(value: str) -> bool:
    """True for a 0x-prefixed 32-byte hex string (legacy `content` field value)."""
    return isinstance(value, str) and bool(_RAW_CONTENT.match(value))


def _base36_encode(data: bytes) -> str:
    value = int.from_bytes(data, "big")
    out = ""
    while value:
        value, digit = divmod(value, 36)
        out = _BASE36[digit] + out
    zeros = len(data) - len(data.lstrip(b"\x00"))
    return "0" * zeros + out


def _base36_decode(text: str) -> bytes:
    zeros = len(text) - len(text.lstrip("0"))
    value = int(text, 36) if text.lstrip("0") else 0
    return b"\x00" * zeros + value.to_bytes((value.bit_length() + 7) // 8, "big")


def _ipfs_cid_bytes(cid: str) -> bytes:
    try:
        if cid.startswith("Qm"):
            # CIDv0 is a bare base58 sha2-256 multihash of a dag-pb node
            multihash = base58.b58decode(cid)
            return bytes([CID_V1, DAG_PB]) + multihash
        if cid.startswith("b"):
            body = cid[1:].upper()
            body += "=" * (-len(body) % 8)
            return base64.b32decode(body)
        if cid.startswith("z"):
            return base58.b58decode(cid[1:])
    except ValueError as exc:
        raise InvalidNameError(f"Invalid IPFS CID: {cid!r}") from exc
    raise InvalidNameError(f"Unsupported IPFS CID encoding: {cid!r}")


def _ipfs_cid_text(cid_bytes: bytes) -> str:
    if cid_bytes[:4] == bytes([CID_V1, DAG_PB, SHA2_256, 0x20]) and len(cid_bytes) == 36:
        return base58.b58encode(cid_bytes[2:]).decode("ascii")
    return "b" + base64.b32encode(cid_bytes).decode("ascii").lower().rstrip("=")


def _ipns_cid_bytes(name: str) -> bytes:
    if _DNS_NAME.match(name):
        # DNSLink name carried in an identity multihash
        encoded = name.encode("utf-8")
        return bytes([CID_V1, LIBP2P_KEY, IDENTITY]) + _varint_encode(len(encoded)) + encoded
    try:
        if name.startswith(("Qm", "12D3")):
            # Bare base58 peer id multihash
            return bytes([CID_V1, LIBP2P_KEY]) + base58.b58decode(name)
        if name.startswith("k"):
            return _base36_decode(name[1:].lower())
    except ValueError as exc:
        raise InvalidNameError(f"Invalid IPNS name: {name!r}") from exc
    if name.startswith(("b", "z")):
        return _ipfs_cid_bytes(name)
    raise InvalidNameError(f"Unsupported IPNS name: {name!r}")


def _ipns_cid_text(cid_bytes: bytes) -> str:
    if len(cid_bytes) > 3 and cid_bytes[0] == CID_V1 and cid_bytes[2] == IDENTITY:
        length, offset = _varint_decode(cid_bytes, 3)
        digest = cid_bytes[offset:]
        try:
            text = digest.decode("utf-8")
        except UnicodeDecodeError:
            text = ""
        if len(digest) == length and _DNS_NAME.match(text):
            return text
    if len(cid_bytes) > 1 and cid_bytes[1] == LIBP2P_KEY:
        return "k" + _base36_encode(cid_bytes)
    return _ipfs_cid_text(cid_bytes)


def encode_contenthash(uri: str) -> bytes:
    """Encode `ipfs://`, `ipns://`, `bzz://`, `onion://` or `onion3://` into contenthash bytes."""
    if not isinstance(uri, str) or "://" not in uri:
        raise InvalidNameError(f"Content URI must be scheme-prefixed, got {uri!r}")
    scheme, _, value = uri.partition("://")
    scheme = scheme.lower()
    if not value:
        raise InvalidNameError(f"Content URI has no value: {uri!r}")

    if scheme == "ipfs":
        return _varint_encode(IPFS_NS) + _ipfs_cid_bytes(value)
    if scheme == "ipns":
        return _varint_encode(IPNS_NS) + _ipns_cid_bytes(value)
    if scheme == "bzz":
        if not _HEX_32.match(value):
            raise InvalidNameError(f"Swarm hash must be 32 bytes of hex: {value!r}")
        digest = bytes.fromhex(value[2:] if value.startswith("0x") else value)
        return (
            _varint_encode(SWARM_NS)
            + bytes([CID_V1])
            + _varint_encode(SWARM_MANIFEST)
            + bytes([KECCAK_256, len(digest)])
            + digest
        )
    if scheme == "onion":
        if len(value) != 16:
            raise InvalidNameError(f"onion address must be 16 characters: {value!r}")
        return _varint_encode(ONION) + value.encode("utf-8")
    if scheme == "onion3":
        if len(value) != 56:
            raise InvalidNameError(f"onion3 address must be 56 characters: {value!r}")
        return _varint_encode(ONION3) + value.encode("utf-8")
    raise InvalidNameError(f"Unsupported content scheme: {scheme!r}")


def decode_contenthash(data: bytes) -> str:
    """Decode contenthash bytes back into a scheme-prefixed URI."""
    if not data:
        raise InvalidNameError("Empty contenthash")
    codec, offset = _varint_decode(bytes(data))
    payload = bytes(data[offset:])

    if codec == IPFS_NS:
        return f"ipfs://{_ipfs_cid_text(payload)}"
    if codec == IPNS_NS:
        return f"ipns://{_ipns_cid_text(payload)}"
    if codec == SWARM_NS:
        version, pos = _varint_decode(payload)
        content_codec, pos = _varint_decode(payload, pos)
        if version != CID_V1 or content_codec != SWARM_MANIFEST or len(payload) < pos + 2:
            raise InvalidNameError("Malformed swarm contenthash")
        hash_fn, length = payload[pos], payload[pos + 1]
        digest = payload[pos + 2:]
        if hash_fn != KECCAK_256 or len(digest) != length:
            raise InvalidNameError("Malformed swarm contenthash")
        return f"bzz://{digest.hex()}"
    if codec == ONION:
        return f"onion://{payload.decode('utf-8')}"
    if codec == ONION3:
        return f"onion3://{payload.decode('utf-8')}"
    raise InvalidNameError(f"Unsupported contenthash codec: {hex(codec)}")
