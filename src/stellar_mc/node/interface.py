"""
Abstract interface for Horizon access.

Defines the contract for ledger access that all node adapters must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from stellar_mc.exceptions import TransportError


@dataclass
class SubmitResponse:
    """Raw answer of the network to a transaction submission."""
    status_code: int
    body: Optional[Any] = None    # Decoded JSON body, None if not JSON
    text: str = ""                # Raw body text

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class HorizonInterface(ABC):
    """
    Abstract interface for Stellar ledger access.

    This interface defines all network operations needed by the tool:
    - Account reads (sequence numbers and account details)
    - Transaction submission
    - Test network funding
    """

    @abstractmethod
    async def connect(self) -> None:
        """Create the underlying client."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the underlying client."""
        pass

    @abstractmethod
    async def load_account(self, address: str) -> dict:
        """
        Load an account record.

        Args:
            address: Account address (G...)

        Returns:
            Account record as returned by Horizon

        Raises:
            AccountError: If the account does not exist
            TransportError: If the request fails
        """
        pass

    @abstractmethod
    async def submit_transaction(self, envelope_xdr: str) -> SubmitResponse:
        """
        Post a base64 transaction envelope.

        Args:
            envelope_xdr: Signed transaction envelope in base64 XDR

        Returns:
            Status and body of the response, whatever the status

        Raises:
            TransportError: If no response was received
        """
        pass

    @abstractmethod
    async def fund_account(self, address: str) -> dict:
        """
        Ask the test network faucet to create and fund an account.

        Raises:
            FundingError: If the faucet refuses
            TransportError: If the request fails
        """
        pass

    async def current_sequence(self, address: str) -> int:
        """
        Get the current sequence number of an account.

        Raises:
            AccountError: If the account does not exist
            TransportError: If the account record carries no usable sequence
        """
        account = await self.load_account(address)
        sequence = account.get("sequence") if isinstance(account, dict) else None

        # Horizon sends the sequence as a decimal string
        if isinstance(sequence, bool) or not isinstance(sequence, (str, int)):
            raise TransportError("decode-error: account record has no sequence")
        try:
            return int(sequence)
        except ValueError:
            raise TransportError("decode-error: account record has no sequence") from None

    async def details(self, address: str) -> dict:
        """Get the full account record for display."""
        return await self.load_account(address)
