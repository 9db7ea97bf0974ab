"""
Transaction Signer - handles transaction signing.

Resolves signing seeds and turns draft transactions into signed envelopes.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import structlog
from stellar_sdk import Keypair
from stellar_sdk.exceptions import SdkError

from stellar_mc.exceptions import SigningError
from stellar_mc.tx.builder import DraftTransaction

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Signature:
    """
    One signature over a transaction hash.

    Attributes:
        public_key: Address of the signer; unknown for decoded envelopes
        hint: Last four bytes of the signer's public key
        signature: Ed25519 signature of the transaction hash
    """
    public_key: Optional[str] = field(compare=False)
    hint: bytes
    signature: bytes


@dataclass(frozen=True)
class SignedEnvelope:
    """A draft transaction plus its signatures, ready for encoding."""
    draft: DraftTransaction
    signatures: Tuple[Signature, ...]

    @property
    def is_signed(self) -> bool:
        return len(self.signatures) > 0


class TransactionSigner:
    """
    Signs draft transactions with one or more seeds.

    Signing is all-or-nothing: every seed is resolved before the first
    signature is made.
    """

    def resolve_signers(
        self,
        draft: DraftTransaction,
        signer_seeds: Sequence[str],
    ) -> List[Keypair]:
        """
        Resolve signing seeds into keypairs.

        An empty sequence falls back to the draft's source account seed.

        Raises:
            SigningError: If there is no signer or any seed is invalid
        """
        seeds = list(signer_seeds)
        if not seeds:
            if draft.source_secret is None:
                raise SigningError(SigningError.NO_SIGNER)
            seeds = [draft.source_secret]

        keypairs = []
        for position, seed in enumerate(seeds, start=1):
            try:
                keypairs.append(Keypair.from_secret(seed))
            except (SdkError, ValueError, TypeError):
                # The seed itself is never echoed back
                raise SigningError("not a valid secret seed", position=position) from None
        return keypairs

    def sign(
        self,
        draft: DraftTransaction,
        signer_seeds: Sequence[str] = (),
    ) -> SignedEnvelope:
        """
        Sign a draft transaction.

        Args:
            draft: The draft to sign
            signer_seeds: Seeds to sign with, in order

        Returns:
            Envelope with one signature per seed, in seed order

        Raises:
            SigningError: If no signer is available or any seed is invalid
        """
        keypairs = self.resolve_signers(draft, signer_seeds)

        tx_hash = draft.hash()
        signatures = tuple(
            Signature(
                public_key=keypair.public_key,
                hint=keypair.signature_hint(),
                signature=keypair.sign(tx_hash),
            )
            for keypair in keypairs
        )

        logger.info(
            "transaction_signed",
            tx_hash=tx_hash.hex()[:16] + "...",
            signers=[keypair.public_key for keypair in keypairs],
        )

        return SignedEnvelope(draft=draft, signatures=signatures)
