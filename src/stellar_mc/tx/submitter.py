"""
Transaction Submitter - sends envelopes and classifies the network's answer.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

import structlog

from stellar_mc.exceptions import TransactionRejectedError, TransportError
from stellar_mc.node.interface import HorizonInterface, SubmitResponse
from stellar_mc.tx.codec import encode_envelope
from stellar_mc.tx.signer import SignedEnvelope

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Accepted:
    """The transaction was applied to the ledger."""
    ledger_sequence: int
    tx_hash: Optional[str] = None

    def raise_for_status(self) -> "Accepted":
        return self


@dataclass(frozen=True)
class Rejected:
    """The network understood the transaction and refused it."""
    result_codes: List[str]

    def raise_for_status(self) -> "Accepted":
        raise TransactionRejectedError(self.result_codes)


@dataclass(frozen=True)
class TransportFailed:
    """No usable answer came back from the network."""
    cause: str

    def raise_for_status(self) -> "Accepted":
        raise TransportError(self.cause)


SubmissionResult = Union[Accepted, Rejected, TransportFailed]


def _result_codes(extras: object) -> List[str]:
    """
    Extract the ordered result codes of a rejection.

    Raises:
        ValueError: If the codes cannot be found
    """
    if not isinstance(extras, dict) or not isinstance(extras.get("result_codes"), dict):
        raise ValueError("rejection carries no result codes")

    codes = extras["result_codes"]
    transaction_code = codes.get("transaction")
    if not isinstance(transaction_code, str):
        raise ValueError("rejection carries no transaction result code")

    result = [transaction_code]
    if isinstance(codes.get("inner_transaction"), str):
        result.append(codes["inner_transaction"])

    operations = codes.get("operations") or []
    if not isinstance(operations, list) or not all(isinstance(c, str) for c in operations):
        raise ValueError("operation result codes are malformed")
    result.extend(operations)
    return result


def classify_response(response: SubmitResponse) -> SubmissionResult:
    """
    Classify Horizon's answer to a submission.

    Returns:
        Accepted for a success body with a ledger number, Rejected for a
        structured rejection, TransportFailed for anything else
    """
    body = response.body

    if response.is_success:
        if isinstance(body, dict) and isinstance(body.get("ledger"), int):
            return Accepted(ledger_sequence=body["ledger"], tx_hash=body.get("hash"))
        return TransportFailed("decode-error: success response carries no ledger sequence")

    if isinstance(body, dict) and "extras" in body:
        try:
            return Rejected(result_codes=_result_codes(body["extras"]))
        except ValueError as e:
            return TransportFailed(f"decode-error: {e}")

    detail = body.get("title") if isinstance(body, dict) else None
    return TransportFailed(
        f"Horizon answered {response.status_code}: {detail or response.text or 'empty body'}"
    )


class Submitter:
    """
    Submits signed transactions.

    Each submission is a single request; nothing is retried. A rejected
    duplicate is reported like any other rejection.
    """

    def __init__(self, node: HorizonInterface):
        self.node = node

    async def submit(self, envelope: SignedEnvelope) -> SubmissionResult:
        """
        Encode and submit a signed envelope.

        Raises:
            SigningError: If the envelope is unsigned
        """
        return await self.submit_encoded(encode_envelope(envelope))

    async def submit_encoded(self, envelope_xdr: str) -> SubmissionResult:
        """Submit an already signed base64 envelope."""
        try:
            response = await self.node.submit_transaction(envelope_xdr)
        except TransportError as e:
            result: SubmissionResult = TransportFailed(e.cause)
        else:
            result = classify_response(response)

        if isinstance(result, Accepted):
            logger.info("transaction_accepted", ledger=result.ledger_sequence, tx_hash=result.tx_hash)
        elif isinstance(result, Rejected):
            logger.error("transaction_rejected", result_codes=result.result_codes)
        else:
            logger.error("transaction_submit_failed", cause=result.cause)

        return result
