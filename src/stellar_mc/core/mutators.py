"""
Mutator Catalog.

A mutator is a typed description of one change to apply to a draft
transaction. The set of kinds is closed: adding a kind means adding a
dataclass here and an entry to CATALOG.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Union

from stellar_sdk import (
    ChangeTrust as ChangeTrustOp,
    CreateAccount as CreateAccountOp,
    Payment as PaymentOp,
    SetOptions as SetOptionsOp,
)
from stellar_sdk.operation import Operation

# Limit stellar-sdk reports for a trustline created without an explicit limit
MAX_TRUST_LIMIT = "922337203685.4775807"


class MutatorKind(str, Enum):
    """Kinds of transaction mutators."""
    SOURCE_ACCOUNT = "source-account"
    PAYMENT = "payment"
    TRUSTLINE_CHANGE = "trust"
    CREATE_ACCOUNT = "create-account"
    HOME_DOMAIN = "home-domain"
    MASTER_WEIGHT = "master-weight"
    INFLATION_DESTINATION = "inflation-destination"
    MEMO_TEXT = "memo"


class MergeMode(str, Enum):
    """How a mutator is merged into a draft transaction."""
    OPERATION = "operation"       # Appended as one ledger operation
    OPTION = "option"             # Folded into the set-options operation
    TRANSACTION = "transaction"   # Sets a transaction-level field


@dataclass(frozen=True)
class CatalogEntry:
    """Merge behaviour and multiplicity of a mutator kind."""
    merge: MergeMode
    repeatable: bool


CATALOG: Dict[MutatorKind, CatalogEntry] = {
    MutatorKind.SOURCE_ACCOUNT: CatalogEntry(MergeMode.TRANSACTION, repeatable=False),
    MutatorKind.PAYMENT: CatalogEntry(MergeMode.OPERATION, repeatable=True),
    MutatorKind.TRUSTLINE_CHANGE: CatalogEntry(MergeMode.OPERATION, repeatable=True),
    MutatorKind.CREATE_ACCOUNT: CatalogEntry(MergeMode.OPERATION, repeatable=True),
    MutatorKind.HOME_DOMAIN: CatalogEntry(MergeMode.OPTION, repeatable=False),
    MutatorKind.MASTER_WEIGHT: CatalogEntry(MergeMode.OPTION, repeatable=False),
    MutatorKind.INFLATION_DESTINATION: CatalogEntry(MergeMode.OPTION, repeatable=False),
    MutatorKind.MEMO_TEXT: CatalogEntry(MergeMode.TRANSACTION, repeatable=False),
}


@dataclass(frozen=True)
class SourceAccountDesignation:
    """Designates the transaction's source account (address or seed)."""
    account: str

    kind: ClassVar[MutatorKind] = MutatorKind.SOURCE_ACCOUNT

    def __repr__(self) -> str:
        # Seeds must not leak into logs or tracebacks
        shown = "S..." if self.account.startswith("S") else self.account
        return f"SourceAccountDesignation(account={shown!r})"


@dataclass(frozen=True)
class Payment:
    """
    Payment of a credit asset.

    Attributes:
        destination: Address receiving the payment
        asset_code: Asset code, e.g. "USD"
        issuer: Address of the asset issuer
        amount: Decimal amount exactly as given, e.g. "42.0"
    """
    destination: str
    asset_code: str
    issuer: str
    amount: str

    kind: ClassVar[MutatorKind] = MutatorKind.PAYMENT


@dataclass(frozen=True)
class TrustlineChange:
    """
    Creates, updates or removes a trustline.

    A limit of None trusts up to the maximum amount; "0" removes the line.
    """
    asset_code: str
    issuer: str
    limit: Optional[str] = None

    kind: ClassVar[MutatorKind] = MutatorKind.TRUSTLINE_CHANGE

    @property
    def removes_trustline(self) -> bool:
        """Check if this change deletes the trustline."""
        if self.limit is None:
            return False
        try:
            return Decimal(self.limit) == 0
        except InvalidOperation:
            return False


@dataclass(frozen=True)
class CreateAccount:
    """Creates and funds a new account with native lumens."""
    destination: str
    starting_balance: str

    kind: ClassVar[MutatorKind] = MutatorKind.CREATE_ACCOUNT


@dataclass(frozen=True)
class SetHomeDomain:
    home_domain: str

    kind: ClassVar[MutatorKind] = MutatorKind.HOME_DOMAIN


@dataclass(frozen=True)
class SetMasterWeight:
    weight: int

    kind: ClassVar[MutatorKind] = MutatorKind.MASTER_WEIGHT


@dataclass(frozen=True)
class SetInflationDestination:
    destination: str

    kind: ClassVar[MutatorKind] = MutatorKind.INFLATION_DESTINATION


@dataclass(frozen=True)
class MemoText:
    text: str

    kind: ClassVar[MutatorKind] = MutatorKind.MEMO_TEXT


Mutator = Union[
    SourceAccountDesignation,
    Payment,
    TrustlineChange,
    CreateAccount,
    SetHomeDomain,
    SetMasterWeight,
    SetInflationDestination,
    MemoText,
]


def mutators_from_operation(operation: Operation) -> List[Mutator]:
    """
    Rebuild catalog mutators from a decoded ledger operation.

    Args:
        operation: Operation decoded from a transaction envelope

    Returns:
        The mutators that produce an equivalent operation

    Raises:
        ValueError: If the operation has no catalog counterpart
    """
    if isinstance(operation, PaymentOp):
        return [Payment(
            destination=operation.destination.account_id,
            asset_code=operation.asset.code,
            issuer=operation.asset.issuer,
            amount=str(operation.amount),
        )]

    if isinstance(operation, ChangeTrustOp):
        limit = str(operation.limit)
        return [TrustlineChange(
            asset_code=operation.asset.code,
            issuer=operation.asset.issuer,
            limit=None if limit == MAX_TRUST_LIMIT else limit,
        )]

    if isinstance(operation, CreateAccountOp):
        return [CreateAccount(
            destination=operation.destination,
            starting_balance=str(operation.starting_balance),
        )]

    if isinstance(operation, SetOptionsOp):
        options: List[Mutator] = []
        if operation.home_domain is not None:
            options.append(SetHomeDomain(operation.home_domain))
        if operation.master_weight is not None:
            options.append(SetMasterWeight(operation.master_weight))
        if operation.inflation_dest is not None:
            options.append(SetInflationDestination(operation.inflation_dest))
        return options

    raise ValueError(f"{type(operation).__name__} is not a supported operation")
