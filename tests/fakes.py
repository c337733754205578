"""
In-memory stand-ins for a Web3Client and the ENS contracts it talks to.

Fake contracts expose the ABI methods by name. Write methods receive the
sender first; payable ones read `chain.msg_value`. Reverts are raised as
ContractCallError, the way Web3Client reports them.
"""

from typing import Any, Dict, List, Optional, Tuple

from eth_utils import keccak, to_checksum_address
from web3 import Web3

from ens_sdk.core.exceptions import ContractCallError
from ens_sdk.core.hashing import namehash, reverse_name
from ens_sdk.core.models import EMPTY_ADDRESS, EMPTY_HASH


def addr(n: int) -> str:
    return to_checksum_address("0x" + f"{n:040x}")


ADMIN = addr(0xA11CE)
BOB = addr(0xB0B)
CAROL = addr(0xCA201)

REGISTRY = addr(0x1000)
PUBLIC_RESOLVER = addr(0x2000)
OLD_RESOLVER = addr(0x2001)
REVERSE_RESOLVER = addr(0x2002)
ETH_RESOLVER = addr(0x2003)
REVERSE_REGISTRAR = addr(0x3000)
BASE_REGISTRAR = addr(0x4000)
CONTROLLER = addr(0x5000)
LEGACY_REGISTRAR = addr(0x6000)
DEED = addr(0x7000)

GRACE_PERIOD = 90 * 24 * 60 * 60
START_TIME = 1_600_000_000


def _revert(method: str, message: str = "revert"):
    raise ContractCallError(method, message)


class FakeChain:
    """Shared state: contracts by address, clock and the current msg.value."""

    def __init__(self):
        self.contracts: Dict[str, "FakeContract"] = {}
        self.now = START_TIME
        self.msg_value = 0

    def deploy(self, contract: "FakeContract") -> "FakeContract":
        self.contracts[contract.address] = contract
        return contract


class FakeContract:
    def __init__(self, chain: FakeChain, address: str):
        self.chain = chain
        self.address = address


class FakeRegistry(FakeContract):
    def __init__(self, chain, address, root_owner):
        super().__init__(chain, address)
        self.records: Dict[bytes, Dict[str, Any]] = {}
        self.events: List[Dict[str, Any]] = []
        self.block = 1
        self._record(EMPTY_HASH)["owner"] = root_owner

    def _record(self, node):
        return self.records.setdefault(bytes(node), {"owner": EMPTY_ADDRESS, "resolver": EMPTY_ADDRESS, "ttl": 0})

    def _authorised(self, sender, node, method):
        if self._record(node)["owner"] != sender:
            _revert(method, "not authorised")

    def owner(self, node):
        return self._record(node)["owner"]

    def resolver(self, node):
        return self._record(node)["resolver"]

    def ttl(self, node):
        return self._record(node)["ttl"]

    def setOwner(self, sender, node, owner):
        self._authorised(sender, node, "setOwner")
        self._record(node)["owner"] = owner

    def setSubnodeOwner(self, sender, node, label, owner):
        self._authorised(sender, node, "setSubnodeOwner")
        subnode = keccak(bytes(node) + bytes(label))
        self._record(subnode)["owner"] = owner
        self.block += 1
        self.events.append({"node": bytes(node), "label": bytes(label), "owner": owner, "blockNumber": self.block})
        return subnode

    def setSubnodeRecord(self, sender, node, label, owner, resolver, ttl):
        subnode = self.setSubnodeOwner(sender, node, label, owner)
        self._record(subnode).update(resolver=resolver, ttl=ttl)

    def setResolver(self, sender, node, resolver):
        self._authorised(sender, node, "setResolver")
        self._record(node)["resolver"] = resolver

    def setTTL(self, sender, node, ttl):
        self._authorised(sender, node, "setTTL")
        self._record(node)["ttl"] = ttl

    def get_events(self, event_name, topics, from_block):
        assert event_name == "NewOwner"
        node = bytes.fromhex(topics[1][2:])
        return [dict(e) for e in self.events if e["node"] == node and e["blockNumber"] >= from_block]


class FakeResolver(FakeContract):
    def __init__(self, chain, address, supports_contenthash=True):
        super().__init__(chain, address)
        self.supports_contenthash = supports_contenthash
        self.addrs: Dict[bytes, str] = {}
        self.coin_addrs: Dict[Tuple[bytes, int], bytes] = {}
        self.contenthashes: Dict[bytes, bytes] = {}
        self.contents: Dict[bytes, bytes] = {}
        self.texts: Dict[Tuple[bytes, str], str] = {}
        self.names: Dict[bytes, str] = {}
        self.interfaces: Dict[Tuple[bytes, bytes], str] = {}

    def addr(self, node, coinType=None):
        if coinType is None:
            return self.addrs.get(bytes(node), EMPTY_ADDRESS)
        if coinType == 60:
            address = self.addrs.get(bytes(node))
            return bytes.fromhex(address[2:]) if address else b""
        return self.coin_addrs.get((bytes(node), coinType), b"")

    def setAddr(self, sender, node, *args):
        if len(args) == 1:
            self.addrs[bytes(node)] = args[0]
        else:
            coin, data = args
            self.coin_addrs[(bytes(node), coin)] = bytes(data)

    def contenthash(self, node):
        if not self.supports_contenthash:
            _revert("contenthash")
        return self.contenthashes.get(bytes(node), b"")

    def setContenthash(self, sender, node, data):
        if not self.supports_contenthash:
            _revert("setContenthash")
        self.contenthashes[bytes(node)] = bytes(data)

    def content(self, node):
        return self.contents.get(bytes(node), EMPTY_HASH)

    def setContent(self, sender, node, data):
        self.contents[bytes(node)] = bytes(data)

    def text(self, node, key):
        return self.texts.get((bytes(node), key), "")

    def setText(self, sender, node, key, value):
        self.texts[(bytes(node), key)] = value

    def name(self, node):
        return self.names.get(bytes(node), "")

    def setName(self, sender, node, name):
        self.names[bytes(node)] = name

    def interfaceImplementer(self, node, interface_id):
        return self.interfaces.get((bytes(node), bytes(interface_id)), EMPTY_ADDRESS)


class FakeReverseRegistrar(FakeContract):
    def __init__(self, chain, address, registry, default_resolver):
        super().__init__(chain, address)
        self.registry = registry
        self.default_resolver = default_resolver

    def setName(self, sender, name):
        node = namehash(reverse_name(sender))
        record = self.registry._record(node)
        record.update(owner=sender, resolver=self.default_resolver.address)
        self.default_resolver.names[node] = name
        return node


class FakeBaseRegistrar(FakeContract):
    def __init__(self, chain, address, registry):
        super().__init__(chain, address)
        self.registry = registry
        self.expiries: Dict[int, int] = {}
        self.owners: Dict[int, str] = {}

    def available(self, token_id):
        return self.expiries.get(token_id, 0) + GRACE_PERIOD < self.chain.now

    def nameExpires(self, token_id):
        return self.expiries.get(token_id, 0)

    def ownerOf(self, token_id):
        if self.expiries.get(token_id, 0) <= self.chain.now:
            _revert("ownerOf", "ERC721: owner query for nonexistent token")
        return self.owners[token_id]

    def GRACE_PERIOD(self):
        return GRACE_PERIOD

    def safeTransferFrom(self, sender, from_, to, token_id):
        if self.ownerOf(token_id) != sender or from_ != sender:
            _revert("safeTransferFrom", "not owner")
        self.owners[token_id] = to

    def reclaim(self, sender, token_id, owner):
        if self.ownerOf(token_id) != sender:
            _revert("reclaim", "not owner")
        self.registry._record(keccak(namehash("eth") + token_id.to_bytes(32, "big")))["owner"] = owner

    def _register(self, token_id, owner, duration):
        self.expiries[token_id] = self.chain.now + duration
        self.owners[token_id] = owner
        self.registry._record(keccak(namehash("eth") + token_id.to_bytes(32, "big")))["owner"] = owner


class FakeController(FakeContract):
    MIN_COMMITMENT_AGE = 60
    MAX_COMMITMENT_AGE = 86400
    PRICE_PER_SECOND = 3

    def __init__(self, chain, address, base):
        super().__init__(chain, address)
        self.base = base
        self.commitments_: Dict[bytes, int] = {}

    def available(self, name):
        return self.base.available(int.from_bytes(keccak(text=name), "big"))

    def rentPrice(self, name, duration):
        return duration * self.PRICE_PER_SECOND

    def minCommitmentAge(self):
        return self.MIN_COMMITMENT_AGE

    def maxCommitmentAge(self):
        return self.MAX_COMMITMENT_AGE

    def commitments(self, commitment):
        return self.commitments_.get(bytes(commitment), 0)

    def commit(self, sender, commitment):
        self.commitments_[bytes(commitment)] = self.chain.now

    def _consume(self, method, commitment, name, duration):
        committed = self.commitments_.pop(bytes(commitment), 0)
        if committed == 0 or committed + self.MIN_COMMITMENT_AGE > self.chain.now:
            _revert(method, "commitment not ready")
        if self.chain.msg_value < self.rentPrice(name, duration):
            _revert(method, "not enough ether provided")

    def register(self, sender, name, owner, duration, secret):
        label = keccak(text=name)
        commitment = bytes(Web3.solidity_keccak(["bytes32", "address", "bytes32"], [label, owner, secret]))
        self._consume("register", commitment, name, duration)
        self.base._register(int.from_bytes(label, "big"), owner, duration)

    def registerWithConfig(self, sender, name, owner, duration, secret, resolver, address):
        label = keccak(text=name)
        commitment = bytes(Web3.solidity_keccak(
            ["bytes32", "address", "address", "address", "bytes32"],
            [label, owner, resolver, address, secret],
        ))
        self._consume("registerWithConfig", commitment, name, duration)
        self.base._register(int.from_bytes(label, "big"), owner, duration)
        node = keccak(namehash("eth") + label)
        self.base.registry._record(node)["resolver"] = resolver
        self.chain.contracts[resolver].addrs[node] = address

    def renew(self, sender, name, duration):
        if self.chain.msg_value < self.rentPrice(name, duration):
            _revert("renew", "not enough ether provided")
        token_id = int.from_bytes(keccak(text=name), "big")
        self.base.expiries[token_id] += duration


class FakeLegacyRegistrar(FakeContract):
    def __init__(self, chain, address):
        super().__init__(chain, address)
        self.entries_: Dict[bytes, tuple] = {}
        self.released: List[bytes] = []

    def entries(self, label_hash):
        if bytes(label_hash) not in self.entries_:
            _revert("entries", "no entry")
        return self.entries_[bytes(label_hash)]

    def releaseDeed(self, sender, label_hash):
        self.released.append(bytes(label_hash))


class FakeDeed(FakeContract):
    def __init__(self, chain, address, owner):
        super().__init__(chain, address)
        self.owner_ = owner

    def owner(self):
        return self.owner_


class FakeWeb3Client:
    """Implements the Web3Client surface on top of a FakeChain."""

    def __init__(self, chain: FakeChain, address: Optional[str] = ADMIN, chain_id: int = 1):
        self.chain = chain
        self.address = address
        self.chain_id = chain_id
        self.account = None
        self.transactions: List[Dict[str, Any]] = []
        self.calls: List[Tuple[str, str]] = []
        self.gas_estimate = 100_000

    @property
    def isReadOnly(self):
        return self.address is None

    def require_address(self):
        if self.address is None:
            raise ValueError("A signer is required for write operations")
        return self.address

    def get_contract(self, address, abi):
        return self.chain.contracts[to_checksum_address(address)]

    @staticmethod
    def _method(contract, method_name):
        return getattr(contract, method_name.split("(")[0])

    def call_contract(self, contract, method_name, *args):
        self.calls.append((contract.address, method_name))
        return self._method(contract, method_name)(*args)

    def estimate_gas(self, contract, method_name, *args, value=0):
        return self.gas_estimate

    def transact_contract(self, contract, method_name, *args, value=0, gas_limit=None):
        sender = self.require_address()
        self.chain.msg_value = value
        try:
            self._method(contract, method_name)(sender, *args)
        finally:
            self.chain.msg_value = 0
        tx_hash = "0x" + keccak(text=f"tx-{len(self.transactions)}").hex()
        self.transactions.append({
            "to": contract.address,
            "method": method_name,
            "args": args,
            "value": value,
            "gas_limit": gas_limit,
            "hash": tx_hash,
        })
        return tx_hash

    def wait_for_transaction(self, tx_hash, timeout=120):
        return {"transactionHash": tx_hash, "status": 1}

    def get_block(self, identifier="latest"):
        return {"number": 1, "timestamp": self.chain.now}

    def get_events(self, contract, event_name, topics, from_block=0):
        return contract.get_events(event_name, topics, from_block)

    def keccak256(self, data):
        return keccak(data)

    def normalize_address(self, address):
        return to_checksum_address(address)


def deploy_ens(chain: FakeChain) -> Dict[str, FakeContract]:
    """
    Deploy a small ENS: root and resolver.eth owned by ADMIN, eth owned by the
    base registrar, addr.reverse owned by the reverse registrar.
    """
    registry = chain.deploy(FakeRegistry(chain, REGISTRY, ADMIN))
    public_resolver = chain.deploy(FakeResolver(chain, PUBLIC_RESOLVER))
    old_resolver = chain.deploy(FakeResolver(chain, OLD_RESOLVER, supports_contenthash=False))
    reverse_resolver = chain.deploy(FakeResolver(chain, REVERSE_RESOLVER))
    eth_resolver = chain.deploy(FakeResolver(chain, ETH_RESOLVER))
    reverse_registrar = chain.deploy(FakeReverseRegistrar(chain, REVERSE_REGISTRAR, registry, reverse_resolver))
    base = chain.deploy(FakeBaseRegistrar(chain, BASE_REGISTRAR, registry))
    controller = chain.deploy(FakeController(chain, CONTROLLER, base))
    legacy = chain.deploy(FakeLegacyRegistrar(chain, LEGACY_REGISTRAR))
    chain.deploy(FakeDeed(chain, DEED, CAROL))

    def own(name, owner, resolver=EMPTY_ADDRESS):
        registry._record(namehash(name)).update(owner=owner, resolver=resolver)

    own("eth", BASE_REGISTRAR, ETH_RESOLVER)
    own("resolver.eth", ADMIN, PUBLIC_RESOLVER)
    own("oldresolver.eth", ADMIN, OLD_RESOLVER)
    own("reverse", ADMIN)
    own("addr.reverse", REVERSE_REGISTRAR)
    public_resolver.addrs[namehash("resolver.eth")] = PUBLIC_RESOLVER

    return {
        "registry": registry,
        "public_resolver": public_resolver,
        "old_resolver": old_resolver,
        "reverse_resolver": reverse_resolver,
        "eth_resolver": eth_resolver,
        "reverse_registrar": reverse_registrar,
        "base": base,
        "controller": controller,
        "legacy": legacy,
    }
