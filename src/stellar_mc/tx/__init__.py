"""
Transaction module.

Handles transaction assembly, signing, encoding and submission.
"""

from stellar_mc.tx.builder import DraftTransaction, TransactionAssembler
from stellar_mc.tx.codec import decode_envelope, encode_envelope
from stellar_mc.tx.signer import Signature, SignedEnvelope, TransactionSigner
from stellar_mc.tx.submitter import Accepted, Rejected, Submitter, TransportFailed

__all__ = [
    "DraftTransaction",
    "TransactionAssembler",
    "decode_envelope",
    "encode_envelope",
    "Signature",
    "SignedEnvelope",
    "TransactionSigner",
    "Accepted",
    "Rejected",
    "Submitter",
    "TransportFailed",
]
