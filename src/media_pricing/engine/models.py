"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
"""
from dataclasses import dataclass, field
from typing import Callable, Optional


FIXED = "fixed"
PERCENTAGE = "percentage"
ADDITION_TYPES = (FIXED, PERCENTAGE)


@dataclass(frozen=True)
class PricingRule:
    """A price range mapped to a fixed or percentage addition."""
    min_price: float
    max_price: Optional[float]  # None = no upper bound
    addition_type: str
    addition_value: float

    def matches(self, price: float) -> bool:
        """Both bounds are inclusive."""
        within_min = price >= self.min_price
        within_max = self.max_price is None or price <= self.max_price
        return within_min and within_max

    def describe_range(self) -> str:
        upper = "∞" if self.max_price is None else f"${self.max_price:,.2f}"
        return f"${self.min_price:,.2f} - {upper}"

    @classmethod
    def from_row(cls, row: dict) -> 'PricingRule':
        """Create a rule from a database row or JSON payload, coercing numbers."""
        max_price = row.get('max_price')
        return cls(
            min_price=float(row['min_price']),
            max_price=float(max_price) if max_price not in (None, '') else None,
            addition_type=str(row['addition_type']),
            addition_value=float(row['addition_value']),
        )

    def to_dict(self) -> dict:
        return {
            'min_price': self.min_price,
            'max_price': self.max_price,
            'addition_type': self.addition_type,
            'addition_value': self.addition_value,
        }


@dataclass
class TraceStep:
    """A single step in the price calculation trace."""
    step: str
    description: str
    value: Optional[str] = None


# Receives each TraceStep as the calculator produces it
TraceHook = Callable[[TraceStep], None]


@dataclass
class PriceTrace:
    """Collects trace steps for one or more price calculations."""
    steps: list[TraceStep] = field(default_factory=list)

    def __call__(self, step: TraceStep):
        self.steps.append(step)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.steps:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)
