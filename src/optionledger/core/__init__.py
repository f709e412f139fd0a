"""Core data models and ledger bookkeeping."""

from .legs import ContractIdentity, LedgerInvariantError, LegLedger, LotEntry, OptionLeg
from .models import MalformedTransactionError, ParsedOption, Transaction

__all__ = [
    "ContractIdentity",
    "LedgerInvariantError",
    "LegLedger",
    "LotEntry",
    "MalformedTransactionError",
    "OptionLeg",
    "ParsedOption",
    "Transaction",
]
