"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import Dict, List, Optional

import pytest
from stellar_sdk import Keypair, Network

from stellar_mc.config import NetworkContext
from stellar_mc.exceptions import AccountError
from stellar_mc.node.interface import HorizonInterface, SubmitResponse


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_network() -> NetworkContext:
    """Create a test network context."""
    return NetworkContext(
        passphrase=Network.TESTNET_NETWORK_PASSPHRASE,
        endpoint_url="https://horizon-testnet.stellar.org",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def accepted_body(ledger: int = 1234, tx_hash: str = "ab" * 32) -> dict:
    """Horizon body of a successful submission."""
    return {"hash": tx_hash, "ledger": ledger, "successful": True}


def rejected_body(transaction_code: str = "tx_failed", operations: Optional[List[str]] = None) -> dict:
    """Horizon problem body of a refused transaction."""
    codes = {"transaction": transaction_code}
    if operations is not None:
        codes["operations"] = operations
    return {
        "type": "https://stellar.org/horizon-errors/transaction_failed",
        "title": "Transaction Failed",
        "status": 400,
        "extras": {
            "envelope_xdr": "AAAA",
            "result_codes": codes,
            "result_xdr": "AAAA",
        },
    }


@pytest.fixture
def source_keypair() -> Keypair:
    return Keypair.random()


@pytest.fixture
def destination_keypair() -> Keypair:
    return Keypair.random()


@pytest.fixture
def issuer_keypair() -> Keypair:
    return Keypair.random()


# ============================================================================
# Mock Node Interface
# ============================================================================

class MockHorizon(HorizonInterface):
    """Mock node interface for testing."""

    def __init__(self):
        self.accounts: Dict[str, int] = {}
        self.sequence_reads: List[str] = []
        self.submitted: List[str] = []
        self.responses: List[SubmitResponse] = []
        self.funded: List[str] = []
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def __aenter__(self) -> "MockHorizon":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    async def load_account(self, address: str) -> dict:
        self.sequence_reads.append(address)
        if address not in self.accounts:
            raise AccountError(address, "not-found")
        return {
            "id": address,
            "account_id": address,
            "sequence": str(self.accounts[address]),
            "balances": [{"asset_type": "native", "balance": "100.0000000"}],
        }

    async def submit_transaction(self, envelope_xdr: str) -> SubmitResponse:
        self.submitted.append(envelope_xdr)
        if self.responses:
            return self.responses.pop(0)
        return SubmitResponse(status_code=200, body=accepted_body())

    async def fund_account(self, address: str) -> dict:
        self.funded.append(address)
        self.accounts[address] = 0
        return {"successful": True}

    def add_account(self, address: str, sequence: int = 100) -> None:
        """Add an account to the mock."""
        self.accounts[address] = sequence

    def queue_response(self, status_code: int, body=None, text: str = "") -> None:
        """Queue the answer to the next submission."""
        self.responses.append(SubmitResponse(status_code=status_code, body=body, text=text))


@pytest.fixture
def mock_node() -> MockHorizon:
    """Create a mock node interface."""
    return MockHorizon()


@pytest.fixture
def mock_node_with_source(mock_node, source_keypair) -> MockHorizon:
    """Create a mock node that knows the source account."""
    mock_node.add_account(source_keypair.public_key, sequence=100)
    return mock_node
