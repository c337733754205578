"""
Registrar for second-level `.eth` names.

Reconciles the legacy auction registrar with the permanent (ERC-721)
registrar, and drives commit/reveal registration through the controller.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any, Optional, Union

from eth_utils import to_checksum_address
from web3 import Web3

from .contracts import (
    BASE_REGISTRAR_ABI, CONTROLLER_ABI, DEED_ABI, INTERFACE_IDS,
    LEGACY_AUCTION_REGISTRAR_ABI, RESOLVER_ABI,
)
from .exceptions import ContractCallError, NotFoundError, PreconditionError
from .hashing import (
    is_encoded_labelhash, label_to_token_id, labelhash, namehash, normalize_label, split_name,
)
from .models import (
    Address, EntryKind, Label, LegacyEntry, LegacyState, Name, PermanentEntry,
    RegistrarEntry, Timestamp, TxHash, is_empty_address,
)
from .registry import Registry
from .resolver import ResolverManager
from .web3_client import Web3Client

logger = logging.getLogger(__name__)

# The legacy registrar opened the reveal phase 48 hours before registration
REVEAL_PERIOD = 48 * 60 * 60

# Resolver whose address is bound into registrations when it is set
DEFAULT_RESOLVER_NAME = "resolver.eth"


def _secret_bytes(secret: Union[bytes, str]) -> bytes:
    if isinstance(secret, (bytes, bytearray)):
        value = bytes(secret)
    elif isinstance(secret, str):
        digits = secret[2:] if secret.startswith("0x") else secret
        try:
            value = bytes.fromhex(digits)
        except ValueError as exc:
            raise ValueError(f"Secret must be hex: {secret!r}") from exc
    else:
        raise TypeError(f"Unsupported secret type: {type(secret)!r}")
    if len(value) != 32:
        raise ValueError("Secret must be 32 bytes")
    return value


class Registrar:
    """Legacy + permanent registrar operations for `.eth` labels."""

    def __init__(
        self,
        web3_client: Web3Client,
        registry: Registry,
        permanentRegistrarAddress: Address,
        controllerAddress: Address,
        legacyAuctionRegistrarAddress: Optional[Address] = None,
        resolvers: Optional[ResolverManager] = None,
    ):
        self.web3_client = web3_client
        self.registry = registry
        self.resolvers = resolvers or ResolverManager(web3_client, registry)
        self.permanentRegistrar = web3_client.get_contract(
            permanentRegistrarAddress, BASE_REGISTRAR_ABI
        )
        self.permanentRegistrarController = web3_client.get_contract(
            controllerAddress, CONTROLLER_ABI
        )
        self.legacyAuctionRegistrar = None
        if not is_empty_address(legacyAuctionRegistrarAddress):
            self.legacyAuctionRegistrar = web3_client.get_contract(
                legacyAuctionRegistrarAddress, LEGACY_AUCTION_REGISTRAR_ABI
            )

    @classmethod
    def from_registry(
        cls,
        web3_client: Web3Client,
        registry: Registry,
        resolvers: Optional[ResolverManager] = None,
    ) -> "Registrar":
        """
        Discover the registrar contracts from the registry.

        The permanent registrar owns `eth`; the controller and the legacy
        auction registrar are published as interface implementers on the
        `eth` resolver.
        """
        resolver_address = registry.getResolver("eth")
        if is_empty_address(resolver_address):
            raise NotFoundError("No resolver set for eth; cannot discover registrars")
        eth_resolver = web3_client.get_contract(resolver_address, RESOLVER_ABI)
        eth_node = namehash("eth")

        def implementer(interface: str) -> Address:
            return web3_client.call_contract(
                eth_resolver, "interfaceImplementer", eth_node, INTERFACE_IDS[interface]
            )

        base_address = registry.getOwner("eth")
        controller_address = implementer("permanentRegistrar")
        if is_empty_address(controller_address):
            controller_address = implementer("permanentRegistrarWithConfig")
        if is_empty_address(controller_address):
            raise NotFoundError("No registrar controller published for eth")
        legacy_address = implementer("legacyRegistrar")

        logger.debug(
            f"Discovered registrars: base={base_address} controller={controller_address} "
            f"legacy={legacy_address}"
        )
        return cls(
            web3_client,
            registry,
            permanentRegistrarAddress=base_address,
            controllerAddress=controller_address,
            legacyAuctionRegistrarAddress=legacy_address,
            resolvers=resolvers,
        )

    def _now(self) -> Timestamp:
        return int(self.web3_client.get_block("latest")["timestamp"])

    def _private_network_gas(self, contract: Any, method_name: str, *args: Any) -> Optional[int]:
        if self.web3_client.chain_id > 1000:
            return self.web3_client.estimate_gas(contract, method_name, *args) * 2
        return None

    # Entries
    def getLegacyEntry(self, label: Label) -> LegacyEntry:
        """Legacy auction entry; a reverted lookup yields a default entry carrying the error."""
        if self.legacyAuctionRegistrar is None:
            return LegacyEntry(error="No legacy auction registrar configured")
        try:
            state, deed, registration_date, value, highest_bid = self.web3_client.call_contract(
                self.legacyAuctionRegistrar, "entries", labelhash(label)
            )
            deed_owner = "0x0"
            if not is_empty_address(deed):
                deed_contract = self.web3_client.get_contract(deed, DEED_ABI)
                deed_owner = self.web3_client.call_contract(deed_contract, "owner")
        except ContractCallError as e:
            logger.debug(f"Legacy entry lookup for {label} reverted: {e}")
            return LegacyEntry(error=str(e))

        registration_date = int(registration_date)
        return LegacyEntry(
            deedOwner=deed_owner,
            state=LegacyState(int(state)),
            registrationDate=registration_date,
            revealDate=registration_date - REVEAL_PERIOD if registration_date else 0,
            value=int(value),
            highestBid=int(highest_bid),
        )

    def getGracePeriod(self) -> int:
        return int(self.web3_client.call_contract(self.permanentRegistrar, "GRACE_PERIOD"))

    def getPermanentEntry(self, label: Label) -> Optional[PermanentEntry]:
        """
        Permanent registrar entry, or None when it could not be read.

        `ownerOf` reverts for expired or never registered names; that is
        reported as `ownerOf=None`, not as a failure.
        """
        token_id = label_to_token_id(label)
        try:
            if is_encoded_labelhash(label):
                available = self.web3_client.call_contract(
                    self.permanentRegistrar, "available", token_id
                )
            else:
                available = self.web3_client.call_contract(
                    self.permanentRegistrarController, "available", normalize_label(label)
                )
            name_expires = int(self.web3_client.call_contract(
                self.permanentRegistrar, "nameExpires", token_id
            ))
            grace_period = self.getGracePeriod()
        except ContractCallError as e:
            logger.warning(f"Error getting permanent registrar entry for {label}: {e}")
            return None

        try:
            owner = self.web3_client.call_contract(self.permanentRegistrar, "ownerOf", token_id)
        except ContractCallError:
            owner = None

        return PermanentEntry(
            available=bool(available),
            nameExpires=name_expires if name_expires > 0 else None,
            gracePeriod=grace_period,
            ownerOf=None if is_empty_address(owner) else owner,
        )

    def getEntry(self, label: Label) -> RegistrarEntry:
        """Reconcile the legacy and permanent entries of `label`."""
        now = self._now()
        legacy = self.getLegacyEntry(label)
        permanent = self.getPermanentEntry(label)

        entry = RegistrarEntry(
            label=label,
            kind=EntryKind.LEGACY_ONLY,
            currentBlockDate=now,
            legacy=legacy,
            permanent=permanent,
        )
        if permanent is None:
            return entry

        entry.available = permanent.available
        entry.expiryTime = permanent.nameExpires
        if permanent.ownerOf:
            entry.kind = EntryKind.PERMANENT_OWNED
            entry.registrant = permanent.ownerOf
        elif permanent.nameExpires is not None:
            grace_period_end = permanent.gracePeriodEndDate
            if now >= permanent.nameExpires and now < grace_period_end:
                entry.kind = EntryKind.PERMANENT_GRACE_PERIOD
                entry.gracePeriodEndDate = grace_period_end
            elif now >= grace_period_end:
                entry.kind = EntryKind.PERMANENT_EXPIRED
            else:
                # Unexpired but ownerOf could not be read
                entry.kind = EntryKind.PERMANENT_OWNED
        return entry

    # Registration
    def getRentPrice(self, label: Label, duration: int) -> int:
        return int(self.web3_client.call_contract(
            self.permanentRegistrarController, "rentPrice", normalize_label(label), int(duration)
        ))

    def getMinimumCommitmentAge(self) -> int:
        return int(self.web3_client.call_contract(
            self.permanentRegistrarController, "minCommitmentAge"
        ))

    def getMaximumCommitmentAge(self) -> int:
        return int(self.web3_client.call_contract(
            self.permanentRegistrarController, "maxCommitmentAge"
        ))

    @staticmethod
    def generateSecret() -> str:
        """Random 32-byte commitment secret as 0x-hex."""
        return "0x" + secrets.token_hex(32)

    def _default_resolver(self) -> Optional[Address]:
        resolver_address = self.resolvers.getAddress(DEFAULT_RESOLVER_NAME)
        return None if is_empty_address(resolver_address) else resolver_address

    def makeCommitment(self, label: Label, owner: Address, secret: Union[bytes, str]) -> bytes:
        """
        Commitment hash for `label`, computed the same way as the controller.

        When `resolver.eth` resolves to a resolver, the commitment also binds
        that resolver and the owner as the name's address record.
        """
        owner = to_checksum_address(owner)
        label_hash = labelhash(label)
        secret_value = _secret_bytes(secret)
        resolver_address = self._default_resolver()
        if resolver_address is None:
            return bytes(Web3.solidity_keccak(
                ["bytes32", "address", "bytes32"],
                [label_hash, owner, secret_value],
            ))
        return bytes(Web3.solidity_keccak(
            ["bytes32", "address", "address", "address", "bytes32"],
            [label_hash, owner, to_checksum_address(resolver_address), owner, secret_value],
        ))

    def commit(self, label: Label, secret: Union[bytes, str]) -> TxHash:
        account = self.web3_client.require_address()
        commitment = self.makeCommitment(label, account, secret)
        return self.web3_client.transact_contract(
            self.permanentRegistrarController, "commit", commitment
        )

    def register(self, label: Label, duration: int, secret: Union[bytes, str]) -> TxHash:
        """
        Reveal and register `label` for `duration` seconds, paying the rent price.

        Raises PreconditionError when there is no matching commitment, when it
        is younger than the minimum commitment age, or when it has expired.
        """
        label = normalize_label(label)
        account = self.web3_client.require_address()
        commitment = self.makeCommitment(label, account, secret)
        committed_at = int(self.web3_client.call_contract(
            self.permanentRegistrarController, "commitments", commitment
        ))
        if committed_at == 0:
            raise PreconditionError(f"No commitment found for {label}; commit first")

        now = self._now()
        ready_at = committed_at + self.getMinimumCommitmentAge()
        if now < ready_at:
            raise PreconditionError(
                f"Commitment for {label} is too recent; register after {ready_at} (now {now})"
            )
        if now >= committed_at + self.getMaximumCommitmentAge():
            raise PreconditionError(f"Commitment for {label} has expired; commit again")

        price = self.getRentPrice(label, duration)
        secret_value = _secret_bytes(secret)
        resolver_address = self._default_resolver()
        if resolver_address is None:
            return self.web3_client.transact_contract(
                self.permanentRegistrarController,
                "register",
                label, account, int(duration), secret_value,
                value=price,
            )
        return self.web3_client.transact_contract(
            self.permanentRegistrarController,
            "registerWithConfig",
            label, account, int(duration), secret_value, resolver_address, account,
            value=price,
        )

    def renew(self, label: Label, duration: int) -> TxHash:
        price = self.getRentPrice(label, duration)
        return self.web3_client.transact_contract(
            self.permanentRegistrarController, "renew", normalize_label(label), int(duration), value=price
        )

    # Ownership
    def transferOwner(self, name: Name, to: Address, gasLimit: Optional[int] = None) -> TxHash:
        """Transfer the registrar token (registrant) of a `.eth` name."""
        label, _ = split_name(name)
        account = self.web3_client.require_address()
        to = self.web3_client.normalize_address(to)
        method = "safeTransferFrom(address,address,uint256)"
        token_id = label_to_token_id(label)
        if gasLimit is None:
            gasLimit = self._private_network_gas(
                self.permanentRegistrar, method, account, to, token_id
            )
        return self.web3_client.transact_contract(
            self.permanentRegistrar, method, account, to, token_id, gas_limit=gasLimit
        )

    def reclaim(self, name: Name, address: Address, gasLimit: Optional[int] = None) -> TxHash:
        """Set the registry owner of a `.eth` name to `address` as its registrant."""
        label, _ = split_name(name)
        address = self.web3_client.normalize_address(address)
        token_id = label_to_token_id(label)
        if gasLimit is None:
            gasLimit = self._private_network_gas(
                self.permanentRegistrar, "reclaim", token_id, address
            )
        return self.web3_client.transact_contract(
            self.permanentRegistrar, "reclaim", token_id, address, gas_limit=gasLimit
        )

    def releaseDeed(self, label: Label) -> TxHash:
        if self.legacyAuctionRegistrar is None:
            raise NotFoundError("No legacy auction registrar configured")
        return self.web3_client.transact_contract(
            self.legacyAuctionRegistrar, "releaseDeed", labelhash(label)
        )
