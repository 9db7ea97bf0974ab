"""
Transaction Assembler - builds draft transactions from mutators.

Resolves the source account, reads its live sequence number and merges
the mutators, in order, into a single ledger transaction.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import structlog
from stellar_sdk import (
    Asset,
    ChangeTrust,
    CreateAccount as CreateAccountOp,
    Keypair,
    Payment as PaymentOp,
    SetOptions,
    StrKey,
    TextMemo,
    Transaction,
    TransactionEnvelope,
)
from stellar_sdk.exceptions import SdkError
from stellar_sdk.memo import Memo, NoneMemo
from stellar_sdk.operation import Operation

from stellar_mc.config import NetworkContext
from stellar_mc.core.mutators import (
    CreateAccount,
    MemoText,
    Mutator,
    Payment,
    SetHomeDomain,
    SetInflationDestination,
    SetMasterWeight,
    SourceAccountDesignation,
    TrustlineChange,
)
from stellar_mc.exceptions import BuildError
from stellar_mc.node.interface import HorizonInterface

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DraftTransaction:
    """
    An unsigned, fully assembled transaction.

    Attributes:
        source_account: Address of the source account
        network: Network the transaction is built for
        sequence_number: Sequence the transaction consumes (current + 1)
        mutators: Mutators in the order they were merged
        transaction: The ledger transaction built from the mutators
        source_secret: Seed of the source account, if it was given as one
    """
    source_account: str
    network: NetworkContext
    sequence_number: int
    mutators: Tuple[Mutator, ...]
    transaction: Transaction = field(compare=False, repr=False)
    source_secret: Optional[str] = field(default=None, compare=False, repr=False)

    def hash(self) -> bytes:
        """Network-specific hash that signers sign."""
        return TransactionEnvelope(self.transaction, self.network.passphrase).hash()

    @property
    def operations(self) -> List[Operation]:
        return list(self.transaction.operations)


@dataclass
class _DraftState:
    """Accumulates merged mutators before the transaction is built."""
    source: Optional[str] = None
    operations: List[Operation] = field(default_factory=list)
    options: Dict[str, object] = field(default_factory=dict)
    options_index: Optional[int] = None
    memo: Memo = field(default_factory=NoneMemo)

    def set_option(self, name: str, value: object) -> None:
        # The set-options operation sits where the first option was declared
        if self.options_index is None:
            self.options_index = len(self.operations)
        self.options[name] = value

    def all_operations(self) -> List[Operation]:
        operations = list(self.operations)
        if self.options_index is not None:
            operations.insert(self.options_index, SetOptions(**self.options))
        return operations


def _merge(state: _DraftState, mutator: Mutator) -> None:
    """Merge one mutator into the draft state."""
    if isinstance(mutator, SourceAccountDesignation):
        state.source = mutator.account
    elif isinstance(mutator, Payment):
        state.operations.append(PaymentOp(
            destination=mutator.destination,
            asset=Asset(mutator.asset_code, mutator.issuer),
            amount=mutator.amount,
        ))
    elif isinstance(mutator, TrustlineChange):
        state.operations.append(ChangeTrust(
            asset=Asset(mutator.asset_code, mutator.issuer),
            limit=mutator.limit,
        ))
    elif isinstance(mutator, CreateAccount):
        state.operations.append(CreateAccountOp(
            destination=mutator.destination,
            starting_balance=mutator.starting_balance,
        ))
    elif isinstance(mutator, SetHomeDomain):
        state.set_option("home_domain", mutator.home_domain)
    elif isinstance(mutator, SetMasterWeight):
        state.set_option("master_weight", mutator.weight)
    elif isinstance(mutator, SetInflationDestination):
        state.set_option("inflation_dest", mutator.destination)
    elif isinstance(mutator, MemoText):
        state.memo = TextMemo(mutator.text)
    else:
        raise BuildError(f"{mutator!r} is not a valid transaction mutator")


def resolve_account(account: str) -> Tuple[str, Optional[str]]:
    """
    Resolve an address or seed.

    Returns:
        (address, seed) where seed is None if an address was given

    Raises:
        BuildError: If the value is neither a valid address nor a valid seed
    """
    if StrKey.is_valid_ed25519_secret_seed(account):
        return Keypair.from_secret(account).public_key, account
    if StrKey.is_valid_ed25519_public_key(account):
        return account, None
    raise BuildError("source account is neither a valid address nor a valid seed")


class TransactionAssembler:
    """
    Builds draft transactions.

    Every build reads the source account's sequence number from the
    network; nothing is cached between builds.
    """

    def __init__(self, node: HorizonInterface, base_fee: int = 100):
        """
        Initialize the assembler.

        Args:
            node: Node interface used to read sequence numbers
            base_fee: Fee per operation in stroops
        """
        self.node = node
        self.base_fee = base_fee

    async def build(
        self,
        source_account: Optional[str],
        network: NetworkContext,
        mutators: Sequence[Mutator],
    ) -> DraftTransaction:
        """
        Build a draft transaction.

        Args:
            source_account: Address or seed of the source account. A
                SourceAccountDesignation among the mutators overrides it.
            network: Network the transaction is built for
            mutators: Mutators to merge, in order

        Returns:
            Draft transaction ready for signing

        Raises:
            AccountError: If the source account does not exist
            BuildError: If the mutators cannot form a valid transaction
        """
        mutators = tuple(mutators)
        state = _DraftState(source=source_account)

        try:
            for mutator in mutators:
                _merge(state, mutator)
            operations = state.all_operations()
        except BuildError:
            raise
        except (SdkError, ValueError, TypeError) as e:
            raise BuildError(f"Failed to build transaction: {e}") from e

        if not state.source:
            raise BuildError("No source account given")

        address, secret = resolve_account(state.source)

        current = await self.node.current_sequence(address)
        sequence = current + 1

        try:
            transaction = Transaction(
                source=address,
                sequence=sequence,
                fee=self.base_fee * len(operations),
                operations=operations,
                memo=state.memo,
            )
            # Serializing surfaces any field the ledger would refuse
            transaction.to_xdr_object()
        except (SdkError, ValueError, TypeError) as e:
            raise BuildError(f"Failed to build transaction: {e}") from e

        logger.info(
            "transaction_built",
            source=address,
            sequence=sequence,
            operation_count=len(operations),
        )

        return DraftTransaction(
            source_account=address,
            network=network,
            sequence_number=sequence,
            mutators=mutators,
            transaction=transaction,
            source_secret=secret,
        )
