# school_api/services/mpesa.py
"""
M-Pesa collaborator interface.

The Daraja client lives outside this service; whatever object is installed
on ``app.state.mpesa_gateway`` only has to satisfy ``MpesaGateway``.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@dataclass
class StatementTransaction:
    reference: str
    amount: Decimal
    transaction_date: datetime
    sender_name: Optional[str] = None
    sender_account: Optional[str] = None


@runtime_checkable
class MpesaGateway(Protocol):
    def authenticate(self) -> str:
        """Return an OAuth access token."""
        ...

    def get_transaction_status(self, transaction_id: str) -> Dict[str, Any]:
        ...

    def get_account_balance(self) -> Dict[str, Any]:
        ...

    def get_recent_transactions(self, days: int = 7) -> List[StatementTransaction]:
        ...
