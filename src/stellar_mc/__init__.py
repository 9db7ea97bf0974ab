"""
stellar-mc

Builds, signs and submits Stellar transactions described declaratively
as small JSON documents. Documents are parsed into ordered mutators,
assembled against the source account's live sequence number, signed and
submitted to Horizon.
"""

__version__ = "0.1.0"

from stellar_mc.config import McSettings, NetworkContext, NetworkType
from stellar_mc.core.parser import parse_document, parse_transaction_request
from stellar_mc.tx.builder import DraftTransaction, TransactionAssembler
from stellar_mc.tx.signer import SignedEnvelope, TransactionSigner
from stellar_mc.tx.submitter import Accepted, Rejected, Submitter, TransportFailed

__all__ = [
    "McSettings",
    "NetworkContext",
    "NetworkType",
    "parse_document",
    "parse_transaction_request",
    "DraftTransaction",
    "TransactionAssembler",
    "SignedEnvelope",
    "TransactionSigner",
    "Accepted",
    "Rejected",
    "Submitter",
    "TransportFailed",
]
