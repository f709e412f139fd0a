"""Domain models for contract identities, lots, and per-contract ledgers.

A :class:`LegLedger` owns every opening lot that shares one :class:`ContractIdentity` and
the close lots produced when closing transactions consume them. Lot consumption goes
through :meth:`LegLedger.consume` so the FIFO state transitions stay in one place and can be
exercised without the rest of the build.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Literal, Optional, Tuple

from .models import MalformedTransactionError, Transaction

Direction = Literal["long", "short"]
LegStatus = Literal["open", "closed", "expired", "assigned"]

_CLOSE_STATUS = {"OEXP": "expired", "OASGN": "assigned"}


class LedgerInvariantError(RuntimeError):
    """Raised when lot bookkeeping would break a ledger invariant."""


def _strike_to_cents(value: Decimal) -> int:
    """Convert a strike price to an integer number of cents."""
    normalized = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return int((normalized * Decimal("100")).to_integral_value(rounding=ROUND_HALF_UP))


def direction_for_code(trans_code: str) -> Direction:
    """Return the ledger direction an opening code creates."""
    if trans_code == "BTO":
        return "long"
    if trans_code == "STO":
        return "short"
    raise MalformedTransactionError(f"{trans_code} does not open a position")


@dataclass(frozen=True)
class ContractIdentity:
    """Identifies one side of an option contract (symbol/expiration/strike/type/direction)."""

    symbol: str
    expiration: date
    strike: Decimal
    option_type: str
    direction: Direction

    @classmethod
    def from_transaction(
        cls, txn: Transaction, direction: Optional[Direction] = None
    ) -> "ContractIdentity":
        """Derive the identity for ``txn``; opening codes imply the direction."""
        option = txn.option
        if not option.is_option:
            raise MalformedTransactionError(f"Transaction {txn.id} is not an option trade")
        if option.expiration is None or option.strike is None or option.option_type is None:
            raise MalformedTransactionError(
                f"Transaction {txn.id} is missing strike, expiration, or option type"
            )
        if txn.quantity <= 0:
            raise MalformedTransactionError(
                f"Transaction {txn.id} has non-positive quantity {txn.quantity}"
            )
        if direction is None:
            direction = direction_for_code(txn.trans_code)
        return cls(
            symbol=option.symbol,
            expiration=option.expiration,
            strike=option.strike,
            option_type=option.option_type,
            direction=direction,
        )

    @property
    def contract_key(self) -> str:
        """Direction-agnostic key, e.g. ``TSLA-2025-10-17-C-51500``."""
        code = "C" if self.option_type == "Call" else "P"
        cents = _strike_to_cents(self.strike)
        return f"{self.symbol}-{self.expiration.isoformat()}-{code}-{cents}"

    @property
    def key(self) -> str:
        return f"{self.contract_key}-{self.direction}"

    def with_direction(self, direction: Direction) -> "ContractIdentity":
        return ContractIdentity(
            symbol=self.symbol,
            expiration=self.expiration,
            strike=self.strike,
            option_type=self.option_type,
            direction=direction,
        )


@dataclass
class LotEntry:
    """A single fill's share of an opening or closing transaction."""

    lot_id: str
    transaction_id: str
    trans_code: str
    quantity: int
    price: Decimal
    amount: Decimal
    date: datetime
    remaining_quantity: int = 0
    closing_codes: List[str] = field(default_factory=list)
    consumed_lot_id: Optional[str] = None

    @property
    def is_opening(self) -> bool:
        return self.trans_code in {"STO", "BTO"}

    @property
    def status(self) -> LegStatus:
        if not self.is_opening:
            return _CLOSE_STATUS.get(self.trans_code, "closed")  # type: ignore[return-value]
        if self.remaining_quantity > 0:
            return "open"
        codes = set(self.closing_codes)
        if len(codes) == 1:
            return _CLOSE_STATUS.get(next(iter(codes)), "closed")  # type: ignore[return-value]
        return "closed"

    def consume(self, quantity: int, trans_code: str) -> None:
        if quantity <= 0 or quantity > self.remaining_quantity:
            raise LedgerInvariantError(
                f"Lot {self.lot_id} cannot consume {quantity} of {self.remaining_quantity}"
            )
        self.remaining_quantity -= quantity
        self.closing_codes.append(trans_code)


@dataclass(frozen=True)
class ConsumedSlice:
    """Quantity taken from one opening lot by a single consume call."""

    lot_index: int
    lot_id: str
    quantity: int


@dataclass(frozen=True)
class OptionLeg:
    """Externally visible per-lot view of a ledger."""

    id: str
    transaction_id: str
    symbol: str
    expiration: date
    strike: Decimal
    option_type: str
    trans_code: str
    quantity: int
    price: Decimal
    amount: Decimal
    activity_date: datetime
    status: LegStatus


@dataclass
class LegLedger:
    """All lots sharing one :class:`ContractIdentity`."""

    identity: ContractIdentity
    lots: List[LotEntry] = field(default_factory=list)
    close_lots: List[LotEntry] = field(default_factory=list)
    last_close_date: Optional[datetime] = None

    @property
    def total_quantity(self) -> int:
        return sum(lot.quantity for lot in self.lots)

    @property
    def remaining_quantity(self) -> int:
        return sum(lot.remaining_quantity for lot in self.lots)

    @property
    def first_open_date(self) -> Optional[datetime]:
        if not self.lots:
            return None
        return min(lot.date for lot in self.lots)

    @property
    def is_closed(self) -> bool:
        return self.remaining_quantity == 0

    def add_opening(self, txn: Transaction) -> LotEntry:
        """Append ``txn`` as a new opening lot; opening lots are never merged."""
        lot = LotEntry(
            lot_id=txn.id,
            transaction_id=txn.id,
            trans_code=txn.trans_code,
            quantity=txn.quantity,
            remaining_quantity=txn.quantity,
            price=txn.price,
            amount=txn.amount,
            date=txn.activity_date,
        )
        self.lots.append(lot)
        return lot

    def available_quantity(self, *, as_of: Optional[datetime] = None) -> int:
        """Open quantity in lots opened on or before ``as_of``."""
        return sum(
            lot.remaining_quantity for lot in self.lots if as_of is None or lot.date <= as_of
        )

    def consume(
        self,
        quantity: int,
        trans_code: str,
        *,
        as_of: Optional[datetime] = None,
    ) -> Tuple[List[ConsumedSlice], int]:
        """
        Consume up to ``quantity`` contracts oldest-first.

        Returns the consumed slices and the quantity that could not be matched. Lots opened
        after ``as_of`` are not eligible.
        """
        if quantity <= 0:
            raise LedgerInvariantError(f"Cannot consume non-positive quantity {quantity}")

        remaining = quantity
        consumed: List[ConsumedSlice] = []
        for index, lot in enumerate(self.lots):
            if remaining == 0:
                break
            if lot.remaining_quantity == 0:
                continue
            if as_of is not None and lot.date > as_of:
                break
            take = min(lot.remaining_quantity, remaining)
            lot.consume(take, trans_code)
            consumed.append(ConsumedSlice(lot_index=index, lot_id=lot.lot_id, quantity=take))
            remaining -= take

        if self.remaining_quantity < 0:
            raise LedgerInvariantError(f"Ledger {self.identity.key} went negative")
        return consumed, remaining

    def add_close_lot(self, lot: LotEntry) -> None:
        self.close_lots.append(lot)
        if self.last_close_date is None or lot.date > self.last_close_date:
            self.last_close_date = lot.date

    def _leg_for(self, lot: LotEntry) -> OptionLeg:
        return OptionLeg(
            id=lot.lot_id,
            transaction_id=lot.transaction_id,
            symbol=self.identity.symbol,
            expiration=self.identity.expiration,
            strike=self.identity.strike,
            option_type=self.identity.option_type,
            trans_code=lot.trans_code,
            quantity=lot.quantity,
            price=lot.price,
            amount=lot.amount,
            activity_date=lot.date,
            status=lot.status,
        )

    def option_legs(self) -> List[OptionLeg]:
        """Opening lots followed by close lots, each as an :class:`OptionLeg`."""
        return [self._leg_for(lot) for lot in (*self.lots, *self.close_lots)]

    def first_opening_leg(self) -> OptionLeg:
        """The trader's originally intended size, unaffected by later partial closes."""
        if not self.lots:
            raise LedgerInvariantError(f"Ledger {self.identity.key} has no opening lots")
        return self._leg_for(self.lots[0])
