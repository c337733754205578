"""
Contract ABIs, interface ids and default deployment addresses for ENS.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import Address, ChainId


def _params(items: Sequence[Tuple[str, str]]) -> List[Dict[str, Any]]:
    return [{"name": name, "type": type_} for name, type_ in items]


def _function(
    name: str,
    inputs: Sequence[Tuple[str, str]] = (),
    outputs: Sequence[Tuple[str, str]] = (),
    mutability: str = "view",
) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": _params(inputs),
        "outputs": _params(outputs),
        "stateMutability": mutability,
        "constant": mutability in ("view", "pure"),
        "payable": mutability == "payable",
    }


def _event(name: str, inputs: Sequence[Tuple[str, str, bool]]) -> Dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"name": arg, "type": type_, "indexed": indexed}
            for arg, type_, indexed in inputs
        ],
    }


REGISTRY_ABI = [
    _function("owner", [("node", "bytes32")], [("", "address")]),
    _function("resolver", [("node", "bytes32")], [("", "address")]),
    _function("ttl", [("node", "bytes32")], [("", "uint64")]),
    _function("setOwner", [("node", "bytes32"), ("owner", "address")], mutability="nonpayable"),
    _function(
        "setSubnodeOwner",
        [("node", "bytes32"), ("label", "bytes32"), ("owner", "address")],
        [("", "bytes32")],
        mutability="nonpayable",
    ),
    _function(
        "setSubnodeRecord",
        [
            ("node", "bytes32"),
            ("label", "bytes32"),
            ("owner", "address"),
            ("resolver", "address"),
            ("ttl", "uint64"),
        ],
        mutability="nonpayable",
    ),
    _function("setResolver", [("node", "bytes32"), ("resolver", "address")], mutability="nonpayable"),
    _function("setTTL", [("node", "bytes32"), ("ttl", "uint64")], mutability="nonpayable"),
    _event("NewOwner", [("node", "bytes32", True), ("label", "bytes32", True), ("owner", "address", False)]),
]

RESOLVER_ABI = [
    _function("addr", [("node", "bytes32")], [("", "address")]),
    _function("addr", [("node", "bytes32"), ("coinType", "uint256")], [("", "bytes")]),
    _function("setAddr", [("node", "bytes32"), ("a", "address")], mutability="nonpayable"),
    _function(
        "setAddr",
        [("node", "bytes32"), ("coinType", "uint256"), ("a", "bytes")],
        mutability="nonpayable",
    ),
    _function("content", [("node", "bytes32")], [("", "bytes32")]),
    _function("setContent", [("node", "bytes32"), ("hash", "bytes32")], mutability="nonpayable"),
    _function("contenthash", [("node", "bytes32")], [("", "bytes")]),
    _function("setContenthash", [("node", "bytes32"), ("hash", "bytes")], mutability="nonpayable"),
    _function("text", [("node", "bytes32"), ("key", "string")], [("", "string")]),
    _function(
        "setText",
        [("node", "bytes32"), ("key", "string"), ("value", "string")],
        mutability="nonpayable",
    ),
    _function("name", [("node", "bytes32")], [("", "string")]),
    _function("setName", [("node", "bytes32"), ("name", "string")], mutability="nonpayable"),
    _function(
        "interfaceImplementer",
        [("node", "bytes32"), ("interfaceID", "bytes4")],
        [("", "address")],
    ),
]

REVERSE_REGISTRAR_ABI = [
    _function("setName", [("name", "string")], [("", "bytes32")], mutability="nonpayable"),
]

BASE_REGISTRAR_ABI = [
    _function("available", [("id", "uint256")], [("", "bool")]),
    _function("nameExpires", [("id", "uint256")], [("", "uint256")]),
    _function("ownerOf", [("tokenId", "uint256")], [("", "address")]),
    _function("GRACE_PERIOD", [], [("", "uint256")]),
    _function(
        "safeTransferFrom",
        [("from", "address"), ("to", "address"), ("tokenId", "uint256")],
        mutability="nonpayable",
    ),
    _function("reclaim", [("id", "uint256"), ("owner", "address")], mutability="nonpayable"),
]

CONTROLLER_ABI = [
    _function("available", [("name", "string")], [("", "bool")]),
    _function("rentPrice", [("name", "string"), ("duration", "uint256")], [("", "uint256")]),
    _function("minCommitmentAge", [], [("", "uint256")]),
    _function("maxCommitmentAge", [], [("", "uint256")]),
    _function("commitments", [("", "bytes32")], [("", "uint256")]),
    _function("commit", [("commitment", "bytes32")], mutability="nonpayable"),
    _function(
        "register",
        [("name", "string"), ("owner", "address"), ("duration", "uint256"), ("secret", "bytes32")],
        mutability="payable",
    ),
    _function(
        "registerWithConfig",
        [
            ("name", "string"),
            ("owner", "address"),
            ("duration", "uint256"),
            ("secret", "bytes32"),
            ("resolver", "address"),
            ("addr", "address"),
        ],
        mutability="payable",
    ),
    _function("renew", [("name", "string"), ("duration", "uint256")], mutability="payable"),
]

LEGACY_AUCTION_REGISTRAR_ABI = [
    _function(
        "entries",
        [("_hash", "bytes32")],
        [
            ("", "uint8"),
            ("", "address"),
            ("", "uint256"),
            ("", "uint256"),
            ("", "uint256"),
        ],
    ),
    _function("releaseDeed", [("_hash", "bytes32")], mutability="nonpayable"),
]

DEED_ABI = [
    _function("owner", [], [("", "address")]),
]

# Interface ids under which the .eth resolver publishes the registrar contracts
INTERFACE_IDS: Dict[str, bytes] = {
    "legacyRegistrar": bytes.fromhex("7ba18ba1"),
    "permanentRegistrar": bytes.fromhex("018fac06"),
    "permanentRegistrarWithConfig": bytes.fromhex("ca27ac4c"),
}

NEW_OWNER_EVENT_SIGNATURE = "NewOwner(bytes32,bytes32,address)"

ENS_REGISTRY_ADDRESS: Address = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"

DEFAULT_REGISTRIES: Dict[ChainId, Dict[str, Address]] = {
    1: {"REGISTRY": ENS_REGISTRY_ADDRESS},  # Ethereum Mainnet
    17000: {"REGISTRY": ENS_REGISTRY_ADDRESS},  # Holesky
    11155111: {"REGISTRY": ENS_REGISTRY_ADDRESS},  # Ethereum Sepolia
}

# Block the registry was deployed at; registry event scans start here
DEFAULT_START_BLOCKS: Dict[ChainId, int] = {
    1: 9380380,
    11155111: 3702721,
}

# ENS subgraph endpoints on The Graph network need an API key in the URL,
# so none ship by default; pass them through `subgraphOverrides`.
DEFAULT_SUBGRAPH_URLS: Dict[ChainId, str] = {}


def resolve_registry_address(
    chain_id: ChainId,
    overrides: Optional[Dict[ChainId, Dict[str, Address]]] = None,
) -> Optional[Address]:
    """Registry address for a chain, honouring per-chain overrides."""
    registries = DEFAULT_REGISTRIES.get(chain_id, {}).copy()
    if overrides and chain_id in overrides:
        registries.update(overrides[chain_id])
    return registries.get("REGISTRY")
