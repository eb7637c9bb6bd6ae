"""Transaction ledger package."""

from fintrack.ledger.ledger import TransactionLedger

__all__ = ["TransactionLedger"]
