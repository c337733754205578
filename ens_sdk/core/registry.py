"""
Accessor for the ENS registry contract: owner, resolver and TTL per node.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from eth_utils import encode_hex, keccak

from .contracts import NEW_OWNER_EVENT_SIGNATURE, REGISTRY_ABI
from .exceptions import InvalidNameError
from .hashing import encode_labelhash, labelhash, namehash, normalize_label, split_name
from .models import (
    EMPTY_ADDRESS, Address, Name, RegistryRecord, Subdomain, TxHash,
)
from .subgraph_client import SubgraphClient
from .web3_client import Web3Client

logger = logging.getLogger(__name__)


def _is_normalized(label: str) -> bool:
    try:
        return normalize_label(label) == label
    except InvalidNameError:
        return False


class Registry:
    """Reads and writes registry records. Writes return the transaction hash."""

    def __init__(
        self,
        web3_client: Web3Client,
        registry_address: Address,
        start_block: int = 0,
        subgraph_client: Optional[SubgraphClient] = None,
    ):
        self.web3_client = web3_client
        self.address = registry_address
        self.start_block = start_block
        self.subgraph_client = subgraph_client
        self.contract = web3_client.get_contract(registry_address, REGISTRY_ABI)

    def _address(self, address: Optional[str]) -> Address:
        if not address or address in ("0x", "0x0"):
            return EMPTY_ADDRESS
        return self.web3_client.normalize_address(address)

    # Reads
    def getOwner(self, name: Name) -> Address:
        return self.web3_client.call_contract(self.contract, "owner", namehash(name))

    def getResolver(self, name: Name) -> Address:
        return self.web3_client.call_contract(self.contract, "resolver", namehash(name))

    def getTTL(self, name: Name) -> int:
        return int(self.web3_client.call_contract(self.contract, "ttl", namehash(name)))

    def getRecord(self, name: Name) -> RegistryRecord:
        return RegistryRecord(
            owner=self.getOwner(name),
            resolver=self.getResolver(name),
            ttl=self.getTTL(name),
        )

    def getEnsStartBlock(self) -> int:
        return self.start_block

    # Writes
    def setOwner(self, name: Name, newOwner: Address) -> TxHash:
        return self.web3_client.transact_contract(
            self.contract, "setOwner", namehash(name), self._address(newOwner)
        )

    def setSubnodeOwner(self, parentName: Name, label: str, newOwner: Address) -> TxHash:
        return self.web3_client.transact_contract(
            self.contract,
            "setSubnodeOwner",
            namehash(parentName),
            labelhash(label),
            self._address(newOwner),
        )

    def setSubnodeRecord(
        self,
        parentName: Name,
        label: str,
        newOwner: Address,
        resolver: Address,
        ttl: int = 0,
    ) -> TxHash:
        return self.web3_client.transact_contract(
            self.contract,
            "setSubnodeRecord",
            namehash(parentName),
            labelhash(label),
            self._address(newOwner),
            self._address(resolver),
            int(ttl),
        )

    def setResolver(self, name: Name, resolverAddr: Address) -> TxHash:
        return self.web3_client.transact_contract(
            self.contract, "setResolver", namehash(name), self._address(resolverAddr)
        )

    def setTTL(self, name: Name, ttl: int) -> TxHash:
        return self.web3_client.transact_contract(self.contract, "setTTL", namehash(name), int(ttl))

    def createSubdomain(self, name: Name) -> TxHash:
        """Create `name` by assigning its subnode to the active account."""
        label, parent = split_name(name)
        return self.setSubnodeOwner(parent, label, self.web3_client.require_address())

    def deleteSubdomain(self, name: Name) -> TxHash:
        """Delete `name`; the registry has no delete, so the owner becomes the zero address."""
        label, parent = split_name(name)
        return self.setSubnodeOwner(parent, label, EMPTY_ADDRESS)

    # Helpers
    def getSubdomains(self, name: Name) -> List[Subdomain]:
        """
        List subdomains of `name` from the registry's NewOwner events.

        Only the latest event per label is kept. Label text is recovered through
        the subgraph when one is configured; unknown labels keep their encoded
        labelhash form.
        """
        node = namehash(name)
        topic0 = encode_hex(keccak(text=NEW_OWNER_EVENT_SIGNATURE))
        events = self.web3_client.get_events(
            self.contract, "NewOwner", [topic0, encode_hex(node)], self.start_block
        )

        latest: Dict[str, Dict[str, Any]] = {}
        for event in sorted(events, key=lambda e: e.get("blockNumber", 0)):
            key = encode_hex(event["label"])
            latest.pop(key, None)
            latest[key] = event
        hashes = list(latest.keys())

        known = self._recover_labels(hashes)
        subdomains = []
        for hash_hex in hashes:
            label = known.get(hash_hex.lower())
            if label is not None and encode_hex(keccak(text=label)) != hash_hex:
                logger.warning(f"Ignoring recovered label {label!r}: hash mismatch for {hash_hex}")
                label = None
            child_label = label if label is not None and _is_normalized(label) else encode_labelhash(hash_hex)
            child_name = f"{child_label}.{name}" if name else child_label
            subdomains.append(
                Subdomain(
                    label=label,
                    labelhash=hash_hex,
                    decrypted=label is not None,
                    node=name,
                    name=child_name,
                    owner=self.getOwner(child_name),
                )
            )
        return subdomains

    def _recover_labels(self, hashes: List[str]) -> Dict[str, str]:
        if not self.subgraph_client or not hashes:
            return {}
        try:
            return self.subgraph_client.get_labels(hashes)
        except Exception as e:
            logger.warning(f"Failed to recover labels from subgraph: {e}")
            return {}
