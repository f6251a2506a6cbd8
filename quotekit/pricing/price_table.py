"""
Rectangular price table with exact-match dimension pricing.

A product priced by matrix carries a list of (width, height, price) entries.
A line only has a price when BOTH of its dimensions equal an entry exactly.
There is no interpolation, no nearest match and no tolerance band:
1.0001 x 2 does not match a 1 x 2 entry.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class MatrixEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: float
    height: float
    price: float


class RectangularPriceTable:
    """Keyed lookup over matrix entries, composite key (width, height)."""

    def __init__(self, entries: Iterable[MatrixEntry] = ()):
        self._prices: Dict[Tuple[float, float], float] = {}
        for entry in entries:
            key = (float(entry.width), float(entry.height))
            # First entry for a size wins, same as a linear scan would find it
            if key not in self._prices:
                self._prices[key] = float(entry.price)

    def __len__(self) -> int:
        return len(self._prices)

    def is_empty(self) -> bool:
        return not self._prices

    def lookup(self, width: float, height: float) -> Optional[float]:
        """Price for exactly width x height, or None when that size is not in the table."""
        return self._prices.get((float(width), float(height)))

    def price_for(self, width: float, height: float) -> float:
        """Like lookup() but 0.0 when unmatched."""
        price = self.lookup(width, height)
        return price if price is not None else 0.0

    def has_size(self, width: float, height: float) -> bool:
        return (float(width), float(height)) in self._prices

    def sizes(self) -> List[Tuple[float, float]]:
        """Available (width, height) pairs, in insertion order."""
        return list(self._prices.keys())
