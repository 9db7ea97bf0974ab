"""
Transport encoding of signed envelopes (base64 XDR).
"""

from typing import List

from stellar_sdk import TransactionEnvelope
from stellar_sdk.decorated_signature import DecoratedSignature
from stellar_sdk.memo import TextMemo

from stellar_mc.config import NetworkContext
from stellar_mc.core.mutators import MemoText, Mutator, SourceAccountDesignation, mutators_from_operation
from stellar_mc.exceptions import ParseError, SigningError
from stellar_mc.tx.builder import DraftTransaction
from stellar_mc.tx.signer import Signature, SignedEnvelope


def encode_envelope(envelope: SignedEnvelope) -> str:
    """
    Encode a signed envelope for submission.

    Raises:
        SigningError: If the envelope carries no signature
    """
    if not envelope.is_signed:
        raise SigningError("refusing to encode an unsigned transaction")

    draft = envelope.draft
    stellar_envelope = TransactionEnvelope(
        draft.transaction,
        draft.network.passphrase,
        signatures=[DecoratedSignature(s.hint, s.signature) for s in envelope.signatures],
    )
    return stellar_envelope.to_xdr()


def decode_envelope(blob: str, network: NetworkContext) -> SignedEnvelope:
    """
    Decode a base64 envelope back into a SignedEnvelope.

    Public keys of the signers cannot be recovered from the encoding;
    decoded signatures carry only their hint.

    Raises:
        ParseError: If the blob is not a supported transaction envelope
    """
    try:
        stellar_envelope = TransactionEnvelope.from_xdr(blob, network.passphrase)
        transaction = stellar_envelope.transaction

        mutators: List[Mutator] = [SourceAccountDesignation(transaction.source.account_id)]
        if isinstance(transaction.memo, TextMemo):
            mutators.append(MemoText(transaction.memo.memo_text.decode("utf-8")))
        for operation in transaction.operations:
            mutators.extend(mutators_from_operation(operation))
    except Exception as e:
        raise ParseError("envelope", f"cannot decode transaction envelope: {e}") from None

    draft = DraftTransaction(
        source_account=transaction.source.account_id,
        network=network,
        sequence_number=transaction.sequence,
        mutators=tuple(mutators),
        transaction=transaction,
    )
    signatures = tuple(
        Signature(public_key=None, hint=s.signature_hint, signature=s.signature)
        for s in stellar_envelope.signatures
    )
    return SignedEnvelope(draft=draft, signatures=signatures)
