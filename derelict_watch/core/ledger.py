"""
Derelict Watch — Resource Ledger
Tracks salvaged resource quantities with all-or-nothing spending.
"""

from typing import Dict, List, Mapping, Optional, Union
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class ResourceKind(Enum):
    """Resources the commander can hold."""
    ALLOYS = "alloys"
    POLYMERS = "polymers"
    WIRING = "wiring"
    ENERGY_CELLS = "energy_cells"
    CIRCUITRY = "circuitry"
    WATER = "water"  # Drinking and reactor coolant

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]


DISPLAY_NAMES = {
    ResourceKind.ALLOYS: "Salvaged Alloys",
    ResourceKind.POLYMERS: "Recycled Polymers",
    ResourceKind.WIRING: "Conduit Wiring",
    ResourceKind.ENERGY_CELLS: "Energy Cells",
    ResourceKind.CIRCUITRY: "Advanced Circuitry",
    ResourceKind.WATER: "Recycled Water",
}

KindLike = Union[ResourceKind, str]


def coerce_kind(kind: KindLike) -> Optional[ResourceKind]:
    """Resolve an enum member or its string value; None if unknown."""
    if isinstance(kind, ResourceKind):
        return kind
    try:
        return ResourceKind(kind)
    except ValueError:
        return None


def format_costs(costs: Mapping[KindLike, int]) -> str:
    """Human-readable cost list, e.g. '10 Salvaged Alloys, 5 Recycled Polymers'."""
    parts = []
    for kind, amount in costs.items():
        resolved = coerce_kind(kind)
        name = resolved.display_name if resolved else str(kind)
        parts.append(f"{amount} {name}")
    return ", ".join(parts)


class ResourceLedger:
    """
    Non-negative integer quantities per resource kind.

    Supports:
    - Affordability checks across a full cost set (unknown kinds fail closed)
    - All-or-nothing deduction
    - Uncapped credit
    - Lifetime inflow/outflow totals for reporting
    """

    def __init__(self, initial: Optional[Mapping[KindLike, int]] = None):
        self.quantities: Dict[ResourceKind, int] = {kind: 0 for kind in ResourceKind}

        # Historical tracking
        self.total_credited: Dict[ResourceKind, int] = {kind: 0 for kind in ResourceKind}
        self.total_deducted: Dict[ResourceKind, int] = {kind: 0 for kind in ResourceKind}

        for kind, amount in (initial or {}).items():
            self.set_quantity(kind, amount)

    def __getitem__(self, kind: KindLike) -> int:
        return self.get(kind)

    def get(self, kind: KindLike) -> int:
        """Current quantity of a kind (0 for unknown kinds)."""
        resolved = coerce_kind(kind)
        if resolved is None:
            return 0
        return self.quantities[resolved]

    def can_afford(self, costs: Mapping[KindLike, int]) -> bool:
        """True iff every requested kind is known and held in sufficient quantity."""
        for kind, amount in costs.items():
            resolved = coerce_kind(kind)
            if resolved is None:
                return False
            if self.quantities[resolved] < amount:
                return False
        return True

    def shortfall(self, costs: Mapping[KindLike, int]) -> Dict[str, int]:
        """Amount missing per kind for a cost set (unknown kinds report the full amount)."""
        missing = {}
        for kind, amount in costs.items():
            resolved = coerce_kind(kind)
            held = self.quantities[resolved] if resolved else 0
            if held < amount:
                key = resolved.value if resolved else str(kind)
                missing[key] = amount - held
        return missing

    def deduct(self, costs: Mapping[KindLike, int]):
        """
        Spend a full cost set.

        Raises:
            ValueError: if the set is not affordable or contains a negative amount.
                Nothing is mutated in that case.
        """
        for amount in costs.values():
            if amount < 0:
                raise ValueError(f"Cannot deduct negative amount: {amount}")
        if not self.can_afford(costs):
            raise ValueError(f"Cannot afford {format_costs(costs)}")

        for kind, amount in costs.items():
            resolved = coerce_kind(kind)
            self.quantities[resolved] -= amount
            self.total_deducted[resolved] += amount

        logger.debug(f"Deducted {format_costs(costs)}")

    def credit(self, gains: Mapping[KindLike, int]):
        """Add resources. No storage cap is modeled."""
        resolved_gains = []
        for kind, amount in gains.items():
            if amount < 0:
                raise ValueError(f"Cannot credit negative amount: {amount}")
            resolved = coerce_kind(kind)
            if resolved is None:
                raise ValueError(f"Unknown resource kind: {kind}")
            resolved_gains.append((resolved, amount))

        for resolved, amount in resolved_gains:
            self.quantities[resolved] += amount
            self.total_credited[resolved] += amount

    def take_up_to(self, kind: KindLike, amount: int) -> int:
        """
        Remove as much as possible of one kind, up to `amount`.

        Returns:
            Amount actually removed.
        """
        if amount < 0:
            raise ValueError(f"Cannot remove negative amount: {amount}")
        resolved = coerce_kind(kind)
        if resolved is None:
            raise ValueError(f"Unknown resource kind: {kind}")

        taken = min(amount, self.quantities[resolved])
        self.quantities[resolved] -= taken
        self.total_deducted[resolved] += taken
        return taken

    def set_quantity(self, kind: KindLike, amount: int):
        """Overwrite a quantity directly."""
        resolved = coerce_kind(kind)
        if resolved is None:
            raise ValueError(f"Unknown resource kind: {kind}")
        if amount < 0:
            raise ValueError(f"Resource quantity cannot be negative: {amount}")
        self.quantities[resolved] = amount

    def empty_kinds(self) -> List[ResourceKind]:
        """Kinds currently at zero."""
        return [kind for kind, amount in self.quantities.items() if amount == 0]

    def get_status(self) -> dict:
        """Get current quantities keyed by resource name."""
        return {kind.value: amount for kind, amount in self.quantities.items()}

    def __repr__(self) -> str:
        held = ", ".join(f"{k.value}={v}" for k, v in self.quantities.items())
        return f"ResourceLedger({held})"
