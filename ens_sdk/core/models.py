"""
Core data models for the ENS SDK.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


# Type aliases
Address = str  # 0x-hex, checksummed when returned by the SDK
ChainId = int
Name = str  # dotted ENS name, e.g. "sub.example.eth"
Label = str  # single name segment, or "[<64 hex>]" when the preimage is unknown
Node = bytes  # 32-byte namehash
TxHash = str  # 0x-hex transaction hash
Timestamp = int  # unix seconds
URI = str  # ipfs://..., bzz://...

EMPTY_ADDRESS: Address = "0x0000000000000000000000000000000000000000"
EMPTY_HASH: bytes = b"\x00" * 32


def is_empty_address(address: Optional[str]) -> bool:
    """True for None, "0x", "0x0" and the all-zero address."""
    if not address:
        return True
    digits = address[2:] if address[:2] in ("0x", "0X") else address
    return not digits or int(digits, 16) == 0


class ContentType(Enum):
    """Which resolver content field holds a name's content."""
    CONTENTHASH = "contenthash"
    OLDCONTENT = "oldcontent"
    NONE = "none"


@dataclass(frozen=True)
class Content:
    """Tagged content value read from a resolver."""
    contentType: ContentType
    value: str  # URI for contenthash, 0x-hex for oldcontent, "" for none

    def to_dict(self) -> Dict[str, Any]:
        return {"contentType": self.contentType.value, "value": self.value}


@dataclass(frozen=True)
class RegistryRecord:
    """Point-in-time copy of a registry record."""
    owner: Address
    resolver: Address
    ttl: int


@dataclass
class DomainDetails:
    """Registry and resolver details for a name."""
    name: Name
    label: Label
    labelhash: str  # 0x-hex
    owner: Address
    resolver: Address
    addr: Optional[Address] = None
    content: Optional[str] = None
    contentType: Optional[ContentType] = None

    @property
    def hasResolver(self) -> bool:
        return not is_empty_address(self.resolver)


@dataclass
class Subdomain:
    """A child of a name discovered from registry events."""
    label: Optional[Label]  # None when the label text could not be recovered
    labelhash: str  # 0x-hex
    decrypted: bool
    node: Name  # parent name
    name: Name  # full name; uses the encoded labelhash when not decrypted
    owner: Address


class LegacyState(IntEnum):
    """Auction states enumerated by the legacy auction registrar."""
    OPEN = 0
    AUCTION = 1
    OWNED = 2
    FORBIDDEN = 3
    REVEAL = 4
    NOT_YET_AVAILABLE = 5


@dataclass
class LegacyEntry:
    """Entry of a label in the legacy auction registrar."""
    deedOwner: Address = "0x0"
    state: LegacyState = LegacyState.OPEN
    registrationDate: Timestamp = 0
    revealDate: Timestamp = 0
    value: int = 0
    highestBid: int = 0
    error: Optional[str] = None  # set when the entry lookup reverted


@dataclass
class PermanentEntry:
    """Entry of a label in the permanent (ERC-721) registrar."""
    available: Optional[bool] = None
    nameExpires: Optional[Timestamp] = None  # None when never registered
    gracePeriod: int = 0
    ownerOf: Optional[Address] = None  # None when ownerOf reverted

    @property
    def gracePeriodEndDate(self) -> Optional[Timestamp]:
        if self.nameExpires is None:
            return None
        return self.nameExpires + self.gracePeriod


class EntryKind(Enum):
    """Which registrar governs a label."""
    LEGACY_ONLY = "legacy-only"
    PERMANENT_OWNED = "permanent-owned"
    PERMANENT_GRACE_PERIOD = "permanent-grace-period"
    PERMANENT_EXPIRED = "permanent-expired"


@dataclass
class RegistrarEntry:
    """Reconciled view of a label across the legacy and permanent registrars."""
    label: Label
    kind: EntryKind
    currentBlockDate: Timestamp
    legacy: LegacyEntry = field(default_factory=LegacyEntry)
    permanent: Optional[PermanentEntry] = None  # None when the permanent lookup failed
    registrant: Optional[Address] = None
    available: Optional[bool] = None
    expiryTime: Optional[Timestamp] = None
    gracePeriodEndDate: Optional[Timestamp] = None

    @property
    def isNewRegistrar(self) -> bool:
        """True when the permanent registrar governs the label."""
        return self.kind in (EntryKind.PERMANENT_OWNED, EntryKind.PERMANENT_GRACE_PERIOD)

    @property
    def permanentDataAvailable(self) -> bool:
        return self.permanent is not None
