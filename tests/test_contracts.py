"""
Tests for the contract tables and per-chain defaults.
"""

from ens_sdk.core.contracts import (
    CONTROLLER_ABI,
    DEFAULT_SUBGRAPH_URLS,
    ENS_REGISTRY_ADDRESS,
    INTERFACE_IDS,
    REGISTRY_ABI,
    RESOLVER_ABI,
    REVERSE_REGISTRAR_ABI,
    resolve_registry_address,
)


def _names(abi, kind="function"):
    return {entry["name"] for entry in abi if entry["type"] == kind}


class TestAbis:
    def test_registry_events(self):
        assert _names(REGISTRY_ABI, "event") == {"NewOwner"}

    def test_resolver_uses_interface_implementer(self):
        assert "supportsInterface" not in _names(RESOLVER_ABI)
        assert "interfaceImplementer" in _names(RESOLVER_ABI)

    def test_reverse_registrar_only_sets_names(self):
        assert _names(REVERSE_REGISTRAR_ABI) == {"setName"}

    def test_controller_commitments_computed_locally(self):
        functions = _names(CONTROLLER_ABI)
        assert "makeCommitment" not in functions
        assert "makeCommitmentWithConfig" not in functions
        assert {"commit", "register", "registerWithConfig"} <= functions

    def test_registrar_interface_ids(self):
        assert set(INTERFACE_IDS) == {
            "legacyRegistrar", "permanentRegistrar", "permanentRegistrarWithConfig",
        }


class TestDefaults:
    def test_registry_address(self):
        assert resolve_registry_address(1) == ENS_REGISTRY_ADDRESS
        assert resolve_registry_address(424242) is None

    def test_registry_override(self):
        local = "0x0000000000000000000000000000000000001234"
        assert resolve_registry_address(1, {1: {"REGISTRY": local}}) == local

    def test_no_hosted_service_subgraph(self):
        assert not any("api.thegraph.com" in url for url in DEFAULT_SUBGRAPH_URLS.values())
