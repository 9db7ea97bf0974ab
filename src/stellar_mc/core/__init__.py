"""
Core mutator components.

This module contains the mutator catalog and the parser that turns
structured documents into ordered mutator sequences.
"""

from stellar_mc.core.mutators import (
    CATALOG,
    CreateAccount,
    MemoText,
    Mutator,
    MutatorKind,
    Payment,
    SetHomeDomain,
    SetInflationDestination,
    SetMasterWeight,
    SourceAccountDesignation,
    TrustlineChange,
)
from stellar_mc.core.parser import (
    OPERATIONS_SCHEMA,
    OPTIONS_SCHEMA,
    PAYMENT_SCHEMA,
    TRANSACTION_SCHEMA,
    TRUSTLINE_SCHEMA,
    TransactionRequest,
    parse_document,
    parse_transaction_request,
)

__all__ = [
    "CATALOG",
    "CreateAccount",
    "MemoText",
    "Mutator",
    "MutatorKind",
    "Payment",
    "SetHomeDomain",
    "SetInflationDestination",
    "SetMasterWeight",
    "SourceAccountDesignation",
    "TrustlineChange",
    "OPERATIONS_SCHEMA",
    "OPTIONS_SCHEMA",
    "PAYMENT_SCHEMA",
    "TRANSACTION_SCHEMA",
    "TRUSTLINE_SCHEMA",
    "TransactionRequest",
    "parse_document",
    "parse_transaction_request",
]
