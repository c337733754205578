"""
ENS SDK - Python client for the Ethereum Name Service.
"""

from .core.exceptions import (
    ContractCallError,
    ENSError,
    InvalidNameError,
    NotFoundError,
    PreconditionError,
)
from .core.hashing import (
    decode_labelhash,
    encode_labelhash,
    is_encoded_labelhash,
    labelhash,
    namehash,
)
from .core.models import (
    EMPTY_ADDRESS,
    Content,
    ContentType,
    DomainDetails,
    EntryKind,
    LegacyEntry,
    LegacyState,
    PermanentEntry,
    RegistrarEntry,
    RegistryRecord,
    Subdomain,
)
from .core.sdk import ENS
from .core.web3_client import Web3Client

__version__ = "0.1.0"

__all__ = [
    "ENS",
    "Web3Client",
    "namehash",
    "labelhash",
    "is_encoded_labelhash",
    "encode_labelhash",
    "decode_labelhash",
    "EMPTY_ADDRESS",
    "Content",
    "ContentType",
    "DomainDetails",
    "EntryKind",
    "LegacyEntry",
    "LegacyState",
    "PermanentEntry",
    "RegistrarEntry",
    "RegistryRecord",
    "Subdomain",
    "ENSError",
    "InvalidNameError",
    "ContractCallError",
    "NotFoundError",
    "PreconditionError",
]
