"""
Thin web3.py wrapper shared by every ENS accessor.

A Web3Client bundles the provider, the optional signer and the active
account. It is passed explicitly to the accessors; nothing in the SDK
reaches for a global provider.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from eth_account import Account
from eth_utils import encode_hex, keccak, to_checksum_address
from web3 import Web3
from web3.exceptions import ContractLogicError

from .exceptions import ContractCallError

logger = logging.getLogger(__name__)


class Web3Client:
    """Web3 client for contract reads and signed contract transactions."""

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        private_key: Optional[str] = None,
        account: Optional[Any] = None,
        w3: Optional[Web3] = None,
    ):
        """Initialize the client.

        Args:
            rpc_url: HTTP JSON-RPC endpoint (ignored when `w3` is given)
            private_key: hex private key used to sign transactions
            account: an eth_account LocalAccount, or an address unlocked on the node
            w3: an already constructed Web3 instance
        """
        if w3 is None:
            if not rpc_url:
                raise ValueError("rpc_url is required when no Web3 instance is given")
            w3 = Web3(Web3.HTTPProvider(rpc_url))
        self.w3 = w3

        self._node_account: Optional[str] = None
        if private_key:
            self.account = Account.from_key(private_key)
        elif isinstance(account, str):
            # Node-managed account: transactions go out unsigned via eth_sendTransaction
            self.account = None
            self._node_account = to_checksum_address(account)
        else:
            self.account = account

        self._chain_id: Optional[int] = None

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(self.w3.eth.chain_id)
        return self._chain_id

    @property
    def address(self) -> Optional[str]:
        """Address of the active account, or None in read-only mode."""
        if self.account is not None:
            return self.account.address
        return self._node_account

    @property
    def isReadOnly(self) -> bool:
        return self.address is None

    def require_address(self) -> str:
        address = self.address
        if address is None:
            raise ValueError("A signer is required for write operations")
        return address

    def get_contract(self, address: str, abi: List[Dict[str, Any]]) -> Any:
        return self.w3.eth.contract(address=to_checksum_address(address), abi=abi)

    @staticmethod
    def _function(contract: Any, method_name: str, args: Sequence[Any]) -> Any:
        if "(" in method_name:
            return contract.get_function_by_signature(method_name)(*args)
        return getattr(contract.functions, method_name)(*args)

    def call_contract(self, contract: Any, method_name: str, *args: Any) -> Any:
        """Read-only contract call. Reverts raise ContractCallError."""
        logger.debug("call %s.%s%r", contract.address, method_name, args)
        try:
            return self._function(contract, method_name, args).call()
        except ContractLogicError as exc:
            raise ContractCallError(method_name, str(exc)) from exc

    def estimate_gas(self, contract: Any, method_name: str, *args: Any, value: int = 0) -> int:
        tx_params: Dict[str, Any] = {"from": self.require_address()}
        if value:
            tx_params["value"] = value
        try:
            return int(self._function(contract, method_name, args).estimate_gas(tx_params))
        except ContractLogicError as exc:
            raise ContractCallError(method_name, str(exc)) from exc

    def transact_contract(
        self,
        contract: Any,
        method_name: str,
        *args: Any,
        value: int = 0,
        gas_limit: Optional[int] = None,
    ) -> str:
        """Send a contract transaction and return its hash without waiting for it to be mined."""
        sender = self.require_address()
        tx_params: Dict[str, Any] = {"from": sender}
        if value:
            tx_params["value"] = value
        if gas_limit is not None:
            tx_params["gas"] = int(gas_limit)

        function = self._function(contract, method_name, args)
        logger.debug("transact %s.%s%r from %s", contract.address, method_name, args, sender)
        try:
            if self.account is None:
                tx_hash = function.transact(tx_params)
            else:
                tx_params["nonce"] = self.w3.eth.get_transaction_count(sender, "pending")
                tx_params["chainId"] = self.chain_id
                tx = function.build_transaction(tx_params)
                signed = self.account.sign_transaction(tx)
                raw = getattr(signed, "raw_transaction", None) or signed.rawTransaction
                tx_hash = self.w3.eth.send_raw_transaction(raw)
        except ContractLogicError as exc:
            raise ContractCallError(method_name, str(exc)) from exc
        return encode_hex(tx_hash)

    def wait_for_transaction(self, tx_hash: str, timeout: int = 120) -> Any:
        """Block until the transaction is mined and return its receipt."""
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        if receipt.get("status") == 0:
            raise ContractCallError("transaction", f"{tx_hash} was reverted")
        return receipt

    def get_block(self, identifier: Union[str, int] = "latest") -> Any:
        return self.w3.eth.get_block(identifier)

    def get_events(
        self,
        contract: Any,
        event_name: str,
        topics: Sequence[Optional[str]],
        from_block: int = 0,
    ) -> List[Dict[str, Any]]:
        """Fetch and decode contract events; `topics` are 0x-hex, topic0 included."""
        logs = self.w3.eth.get_logs({
            "address": contract.address,
            "topics": list(topics),
            "fromBlock": from_block,
            "toBlock": "latest",
        })
        event = getattr(contract.events, event_name)()
        decoded = []
        for log in logs:
            data = event.process_log(log)
            decoded.append({**dict(data["args"]), "blockNumber": data["blockNumber"]})
        return decoded

    def keccak256(self, data: bytes) -> bytes:
        return keccak(data)

    def normalize_address(self, address: str) -> str:
        return to_checksum_address(address)
