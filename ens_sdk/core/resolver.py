"""
Accessor for resolver records: coin addresses, content and text records.

Every operation first looks up the name's resolver in the registry. Reads
against a name without a resolver return sentinels; writes raise NotFoundError.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from eth_utils import encode_hex, is_address, to_checksum_address

from .contenthash import decode_contenthash, encode_contenthash, is_raw_content_hash
from .contracts import RESOLVER_ABI
from .exceptions import ContractCallError, InvalidNameError, NotFoundError
from .hashing import namehash
from .models import (
    EMPTY_ADDRESS, EMPTY_HASH, Address, Content, ContentType, Name, TxHash,
    is_empty_address,
)
from .registry import Registry
from .web3_client import Web3Client

logger = logging.getLogger(__name__)

# SLIP-44 coin types
COIN_TYPES = {
    "BTC": 0,
    "LTC": 2,
    "DOGE": 3,
    "ETH": 60,
    "ETC": 61,
    "RSK": 137,
    "XRP": 144,
    "BCH": 145,
    "BNB": 714,
}

# Coins whose addresses are plain 20-byte EVM addresses
EVM_COINS = {"ETH", "ETC", "RSK"}


def coin_type(coinTicker: str) -> int:
    ticker = coinTicker.upper()
    if ticker not in COIN_TYPES:
        raise ValueError(f"Unsupported coin: {coinTicker}. Supported: {', '.join(sorted(COIN_TYPES))}")
    return COIN_TYPES[ticker]


def encode_coin_address(coinTicker: str, address: str) -> bytes:
    """Binary form of an address as stored by the multicoin `setAddr`."""
    if coinTicker.upper() in EVM_COINS:
        if not is_address(address):
            raise ValueError(f"Invalid {coinTicker} address: {address}")
        return bytes.fromhex(to_checksum_address(address)[2:])
    digits = address[2:] if address.startswith("0x") else address
    try:
        return bytes.fromhex(digits)
    except ValueError as exc:
        raise ValueError(f"{coinTicker} addresses must be given as raw hex bytes") from exc


def decode_coin_address(coinTicker: str, data: bytes) -> str:
    if coinTicker.upper() in EVM_COINS:
        if not data:
            return EMPTY_ADDRESS
        return to_checksum_address(data)
    return encode_hex(data)


class ResolverManager:
    """Reads and writes records on a name's resolver."""

    def __init__(self, web3_client: Web3Client, registry: Registry):
        self.web3_client = web3_client
        self.registry = registry

    def _resolver_for(self, name: Name) -> Optional[Any]:
        resolver_address = self.registry.getResolver(name)
        if is_empty_address(resolver_address):
            logger.debug(f"No resolver set for {name}")
            return None
        return self.web3_client.get_contract(resolver_address, RESOLVER_ABI)

    def _require_resolver(self, name: Name) -> Any:
        resolver = self._resolver_for(name)
        if resolver is None:
            raise NotFoundError(f"No resolver set for {name}")
        return resolver

    # Addresses
    def getAddress(self, name: Name, coinTicker: str = "ETH") -> str:
        """Address record for `coinTicker`; zero address (or "0x") when unset or no resolver."""
        ticker = coinTicker.upper()
        resolver = self._resolver_for(name)
        if resolver is None:
            return EMPTY_ADDRESS if ticker in EVM_COINS else "0x"
        node = namehash(name)
        if ticker == "ETH":
            return self.web3_client.call_contract(resolver, "addr(bytes32)", node)
        data = self.web3_client.call_contract(
            resolver, "addr(bytes32,uint256)", node, coin_type(ticker)
        )
        return decode_coin_address(ticker, data)

    def getAddr(self, name: Name, coinTicker: str = "ETH") -> str:
        return self.getAddress(name, coinTicker)

    def setAddress(self, name: Name, address: Address) -> TxHash:
        """Set the ETH address record."""
        resolver = self._require_resolver(name)
        return self.web3_client.transact_contract(
            resolver, "setAddr(bytes32,address)", namehash(name),
            self.web3_client.normalize_address(address),
        )

    def setAddr(self, name: Name, coinTicker: str, address: str) -> TxHash:
        """Set the address record for any supported coin."""
        if coinTicker.upper() == "ETH":
            return self.setAddress(name, address)
        resolver = self._require_resolver(name)
        return self.web3_client.transact_contract(
            resolver,
            "setAddr(bytes32,uint256,bytes)",
            namehash(name),
            coin_type(coinTicker),
            encode_coin_address(coinTicker, address),
        )

    # Content
    def getContent(self, name: Name) -> Content:
        """
        Content of `name`, tagged with the field it came from.

        The EIP-1577 contenthash is read first; resolvers that predate it
        (the call reverts) or have it unset fall back to the legacy 32-byte
        `content` field. A contenthash in a namespace this codec cannot
        decode is returned as raw 0x-hex.
        """
        resolver = self._resolver_for(name)
        if resolver is None:
            return Content(ContentType.NONE, "")
        node = namehash(name)

        try:
            encoded = self.web3_client.call_contract(resolver, "contenthash", node)
        except ContractCallError as e:
            logger.debug(f"Resolver for {name} has no contenthash support: {e}")
            encoded = b""
        if encoded:
            try:
                return Content(ContentType.CONTENTHASH, decode_contenthash(encoded))
            except InvalidNameError as e:
                logger.warning(f"Returning raw contenthash for {name}: {e}")
                return Content(ContentType.CONTENTHASH, encode_hex(encoded))

        legacy = self.web3_client.call_contract(resolver, "content", node)
        if not legacy or bytes(legacy) == EMPTY_HASH:
            return Content(ContentType.NONE, "")
        return Content(ContentType.OLDCONTENT, encode_hex(legacy))

    def setContent(self, name: Name, hash: str) -> TxHash:
        """Set the legacy 32-byte content field."""
        if not is_raw_content_hash(hash):
            raise InvalidNameError(f"Content must be a 0x-prefixed 32-byte hex string, got {hash!r}")
        resolver = self._require_resolver(name)
        return self.web3_client.transact_contract(
            resolver, "setContent", namehash(name), bytes.fromhex(hash[2:])
        )

    def setContenthash(self, name: Name, uri: str) -> TxHash:
        """
        Set content from a scheme URI (ipfs://, ipns://, bzz://, onion://, onion3://).

        A raw 32-byte hex string is written to the legacy content field instead.
        """
        if is_raw_content_hash(uri):
            return self.setContent(name, uri)
        encoded = encode_contenthash(uri)
        resolver = self._require_resolver(name)
        return self.web3_client.transact_contract(
            resolver, "setContenthash", namehash(name), encoded
        )

    # Text records
    def getText(self, name: Name, key: str) -> str:
        resolver = self._resolver_for(name)
        if resolver is None:
            return ""
        return self.web3_client.call_contract(resolver, "text", namehash(name), key)

    def setText(self, name: Name, key: str, value: str) -> TxHash:
        resolver = self._require_resolver(name)
        return self.web3_client.transact_contract(resolver, "setText", namehash(name), key, value)
