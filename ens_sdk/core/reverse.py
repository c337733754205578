"""
Reverse resolution: address -> name through `<addr>.addr.reverse`.
"""

from __future__ import annotations

import logging
from typing import Optional

from .contracts import RESOLVER_ABI, REVERSE_REGISTRAR_ABI
from .exceptions import NotFoundError
from .hashing import namehash, reverse_name
from .models import Address, Name, TxHash, is_empty_address
from .registry import Registry
from .web3_client import Web3Client

logger = logging.getLogger(__name__)

REVERSE_ROOT = "addr.reverse"


class ReverseRegistrar:
    """Reads and claims reverse records."""

    def __init__(self, web3_client: Web3Client, registry: Registry):
        self.web3_client = web3_client
        self.registry = registry

    def getName(self, address: Address) -> Name:
        """Primary name claimed by `address`; "" when no reverse record exists."""
        reverse = reverse_name(address)
        resolver_address = self.registry.getResolver(reverse)
        if is_empty_address(resolver_address):
            logger.debug(f"No reverse resolver for {address}")
            return ""
        resolver = self.web3_client.get_contract(resolver_address, RESOLVER_ABI)
        return self.web3_client.call_contract(resolver, "name", namehash(reverse)) or ""

    def _reverse_registrar(self):
        registrar_address = self.registry.getOwner(REVERSE_ROOT)
        if is_empty_address(registrar_address):
            raise NotFoundError(f"{REVERSE_ROOT} has no reverse registrar")
        return self.web3_client.get_contract(registrar_address, REVERSE_REGISTRAR_ABI)

    def claimAndSetReverseRecordName(
        self, name: Name, estimatedGasLimit: Optional[int] = None
    ) -> TxHash:
        """
        Claim the caller's reverse node and point it at `name` in one transaction.

        On private networks (chain id > 1000) without an explicit gas limit,
        twice the estimated gas is sent.
        """
        registrar = self._reverse_registrar()
        gas_limit = estimatedGasLimit
        if gas_limit is None and self.web3_client.chain_id > 1000:
            gas_limit = self.web3_client.estimate_gas(registrar, "setName", name) * 2
        return self.web3_client.transact_contract(registrar, "setName", name, gas_limit=gas_limit)

    def setReverseRecordName(self, name: Name) -> TxHash:
        """Set the name on the caller's existing reverse resolver."""
        reverse = reverse_name(self.web3_client.require_address())
        resolver_address = self.registry.getResolver(reverse)
        if is_empty_address(resolver_address):
            raise NotFoundError(f"No reverse resolver set for {reverse}")
        resolver = self.web3_client.get_contract(resolver_address, RESOLVER_ABI)
        return self.web3_client.transact_contract(resolver, "setName", namehash(reverse), name)
