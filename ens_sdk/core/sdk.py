"""
Main client class for the ENS SDK.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from eth_utils import encode_hex

from .contracts import DEFAULT_START_BLOCKS, DEFAULT_SUBGRAPH_URLS, resolve_registry_address
from .hashing import labelhash, split_name
from .models import (
    Address, ChainId, Content, DomainDetails, Label, LegacyEntry, Name,
    PermanentEntry, RegistrarEntry, RegistryRecord, Subdomain, TxHash, is_empty_address,
)
from .registrar import Registrar
from .registry import Registry
from .resolver import ResolverManager
from .reverse import ReverseRegistrar
from .subgraph_client import SubgraphClient
from .web3_client import Web3Client

logger = logging.getLogger(__name__)


class ENS:
    """Client for the Ethereum Name Service on one chain."""

    def __init__(
        self,
        chainId: ChainId,
        rpcUrl: Optional[str] = None,
        signer: Optional[Any] = None,  # private key, LocalAccount or node account address
        registryOverrides: Optional[Dict[ChainId, Dict[str, Address]]] = None,
        subgraphOverrides: Optional[Dict[ChainId, str]] = None,
        startBlock: Optional[int] = None,
        web3_client: Optional[Web3Client] = None,
    ):
        """Initialize the client."""
        self.chainId = chainId
        self.rpcUrl = rpcUrl
        self.signer = signer

        if web3_client is not None:
            self.web3_client = web3_client
        elif isinstance(signer, str) and len(signer) != 42:
            self.web3_client = Web3Client(rpcUrl, private_key=signer)
        elif signer:
            # LocalAccount, or a 0x-address unlocked on the node
            self.web3_client = Web3Client(rpcUrl, account=signer)
        else:
            # Read-only mode - no signer
            self.web3_client = Web3Client(rpcUrl)

        self.registry_overrides = registryOverrides or {}
        registry_address = resolve_registry_address(chainId, self.registry_overrides)
        if not registry_address:
            raise ValueError(f"No ENS registry address for chain {chainId}")

        subgraph_urls = dict(DEFAULT_SUBGRAPH_URLS)
        subgraph_urls.update(subgraphOverrides or {})
        subgraph_url = subgraph_urls.get(chainId)
        self.subgraph_client = SubgraphClient(subgraph_url) if subgraph_url else None

        if startBlock is None:
            startBlock = DEFAULT_START_BLOCKS.get(chainId, 0)

        self.registry = Registry(
            self.web3_client,
            registry_address,
            start_block=startBlock,
            subgraph_client=self.subgraph_client,
        )
        self.resolvers = ResolverManager(self.web3_client, self.registry)
        self.reverse = ReverseRegistrar(self.web3_client, self.registry)
        self._registrar: Optional[Registrar] = None

    @property
    def isReadOnly(self) -> bool:
        """Check if the client is in read-only mode (no signer)."""
        return self.web3_client.isReadOnly

    @property
    def registrar(self) -> Registrar:
        """Registrar for `.eth`, discovered from the registry on first use."""
        if self._registrar is None:
            self._registrar = Registrar.from_registry(
                self.web3_client, self.registry, resolvers=self.resolvers
            )
        return self._registrar

    def waitForTransaction(self, txHash: TxHash, timeout: int = 120) -> Any:
        return self.web3_client.wait_for_transaction(txHash, timeout=timeout)

    # Registry
    def getOwner(self, name: Name) -> Address:
        return self.registry.getOwner(name)

    def setOwner(self, name: Name, newOwner: Address) -> TxHash:
        return self.registry.setOwner(name, newOwner)

    def setSubnodeOwner(self, parentName: Name, label: Label, newOwner: Address) -> TxHash:
        return self.registry.setSubnodeOwner(parentName, label, newOwner)

    def setSubnodeRecord(
        self, parentName: Name, label: Label, newOwner: Address, resolver: Address, ttl: int = 0
    ) -> TxHash:
        return self.registry.setSubnodeRecord(parentName, label, newOwner, resolver, ttl)

    def getResolver(self, name: Name) -> Address:
        return self.registry.getResolver(name)

    def setResolver(self, name: Name, resolverAddr: Address) -> TxHash:
        return self.registry.setResolver(name, resolverAddr)

    def getTTL(self, name: Name) -> int:
        return self.registry.getTTL(name)

    def getRecord(self, name: Name) -> RegistryRecord:
        return self.registry.getRecord(name)

    def getEnsStartBlock(self) -> int:
        return self.registry.getEnsStartBlock()

    def setTTL(self, name: Name, ttl: int) -> TxHash:
        return self.registry.setTTL(name, ttl)

    def createSubdomain(self, name: Name) -> TxHash:
        return self.registry.createSubdomain(name)

    def deleteSubdomain(self, name: Name) -> TxHash:
        return self.registry.deleteSubdomain(name)

    def getSubdomains(self, name: Name) -> List[Subdomain]:
        return self.registry.getSubdomains(name)

    # Resolver
    def getAddress(self, name: Name, coinTicker: str = "ETH") -> str:
        return self.resolvers.getAddress(name, coinTicker)

    def getAddr(self, name: Name, coinTicker: str = "ETH") -> str:
        return self.resolvers.getAddr(name, coinTicker)

    def setAddress(self, name: Name, address: Address) -> TxHash:
        return self.resolvers.setAddress(name, address)

    def setAddr(self, name: Name, coinTicker: str, address: str) -> TxHash:
        return self.resolvers.setAddr(name, coinTicker, address)

    def getContent(self, name: Name) -> Content:
        return self.resolvers.getContent(name)

    def setContent(self, name: Name, hash: str) -> TxHash:
        return self.resolvers.setContent(name, hash)

    def setContenthash(self, name: Name, uri: str) -> TxHash:
        return self.resolvers.setContenthash(name, uri)

    def getText(self, name: Name, key: str) -> str:
        return self.resolvers.getText(name, key)

    def setText(self, name: Name, key: str, value: str) -> TxHash:
        return self.resolvers.setText(name, key, value)

    # Reverse records
    def getName(self, address: Address) -> Name:
        return self.reverse.getName(address)

    def claimAndSetReverseRecordName(
        self, name: Name, estimatedGasLimit: Optional[int] = None
    ) -> TxHash:
        return self.reverse.claimAndSetReverseRecordName(name, estimatedGasLimit)

    def setReverseRecordName(self, name: Name) -> TxHash:
        return self.reverse.setReverseRecordName(name)

    # Registrar
    def getEntry(self, label: Label) -> RegistrarEntry:
        return self.registrar.getEntry(label)

    def getLegacyEntry(self, label: Label) -> LegacyEntry:
        return self.registrar.getLegacyEntry(label)

    def getPermanentEntry(self, label: Label) -> Optional[PermanentEntry]:
        return self.registrar.getPermanentEntry(label)

    def getRentPrice(self, label: Label, duration: int) -> int:
        return self.registrar.getRentPrice(label, duration)

    def getMinimumCommitmentAge(self) -> int:
        return self.registrar.getMinimumCommitmentAge()

    def getMaximumCommitmentAge(self) -> int:
        return self.registrar.getMaximumCommitmentAge()

    def getGracePeriod(self) -> int:
        return self.registrar.getGracePeriod()

    @staticmethod
    def generateSecret() -> str:
        return Registrar.generateSecret()

    def makeCommitment(self, label: Label, owner: Address, secret: Union[bytes, str]) -> bytes:
        return self.registrar.makeCommitment(label, owner, secret)

    def commit(self, label: Label, secret: Union[bytes, str]) -> TxHash:
        return self.registrar.commit(label, secret)

    def register(self, label: Label, duration: int, secret: Union[bytes, str]) -> TxHash:
        return self.registrar.register(label, duration, secret)

    def renew(self, label: Label, duration: int) -> TxHash:
        return self.registrar.renew(label, duration)

    def transferOwner(self, name: Name, to: Address, gasLimit: Optional[int] = None) -> TxHash:
        return self.registrar.transferOwner(name, to, gasLimit)

    def reclaim(self, name: Name, address: Address, gasLimit: Optional[int] = None) -> TxHash:
        return self.registrar.reclaim(name, address, gasLimit)

    def releaseDeed(self, label: Label) -> TxHash:
        return self.registrar.releaseDeed(label)

    # Helpers
    def getDomainDetails(self, name: Name) -> DomainDetails:
        """Owner and resolver of `name`, plus its ETH address and content when a resolver is set."""
        label, _ = split_name(name)
        details = DomainDetails(
            name=name,
            label=label,
            labelhash=encode_hex(labelhash(label)),
            owner=self.getOwner(name),
            resolver=self.getResolver(name),
        )
        if is_empty_address(details.resolver):
            return details

        content = self.getContent(name)
        details.addr = self.getAddress(name)
        details.content = content.value
        details.contentType = content.contentType
        return details
