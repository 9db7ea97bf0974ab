"""
Node Integration Layer.

Provides abstracted access to Stellar ledger data and transaction submission.
"""

from stellar_mc.node.interface import HorizonInterface, SubmitResponse
from stellar_mc.node.horizon import HorizonAdapter

__all__ = [
    "HorizonInterface",
    "SubmitResponse",
    "HorizonAdapter",
]
