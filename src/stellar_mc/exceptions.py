"""
Error taxonomy for stellar-mc.

Every stage of the pipeline raises one of these; only the command-line
entry point decides how the process exits.
"""

from typing import List, Optional, Sequence


class StellarMcError(Exception):
    """Base class for all stellar-mc errors."""
    pass


class ConfigError(StellarMcError):
    """Raised when the network selection cannot be resolved."""
    pass


class ParseError(StellarMcError):
    """
    Raised when a structured document is malformed or fails validation.

    Attributes:
        field: Path of the offending field, "syntax" for malformed JSON
            or "unknown-operation" for an entry that matches no mutator
        reason: Human-readable explanation
    """

    SYNTAX = "syntax"
    UNKNOWN_OPERATION = "unknown-operation"

    def __init__(self, field: str, reason: str):
        if field == self.SYNTAX:
            message = f"malformed document: {reason}"
        elif field == self.UNKNOWN_OPERATION:
            message = f"unknown operation: {reason}"
        else:
            message = f"invalid document field '{field}': {reason}"
        super().__init__(message)
        self.field = field
        self.reason = reason


class AccountError(StellarMcError):
    """Raised when an account does not exist on the ledger."""

    def __init__(self, address: str, reason: str = "not-found"):
        super().__init__(f"account {address}: {reason}")
        self.address = address
        self.reason = reason


class BuildError(StellarMcError):
    """Raised when mutators cannot be merged into a draft transaction."""
    pass


class SigningError(StellarMcError):
    """Raised when no envelope can be produced for a draft."""

    NO_SIGNER = "no-signer-available"

    def __init__(self, reason: str, position: Optional[int] = None):
        if position is None:
            message = f"cannot sign transaction: {reason}"
        else:
            message = f"cannot sign transaction: signer #{position}: {reason}"
        super().__init__(message)
        self.reason = reason
        self.position = position


class TransportError(StellarMcError):
    """Raised when the network could not be reached or answered garbage."""

    def __init__(self, cause: str):
        super().__init__(f"transport failure: {cause}")
        self.cause = cause


class TransactionRejectedError(StellarMcError):
    """Raised when the network understood but refused a transaction."""

    def __init__(self, result_codes: Sequence[str]):
        self.result_codes: List[str] = list(result_codes)
        super().__init__(
            "transaction rejected: " + ", ".join(self.result_codes)
        )


class FundingError(StellarMcError):
    """Raised when the test network faucet refuses to fund an account."""
    pass
