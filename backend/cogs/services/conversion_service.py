"""
Unit conversion service for COGS.

Converts quantities between units of the same category using the fixed
factor table in cogs.units. No rounding happens here.
"""
from decimal import Decimal
from typing import Optional

from cogs.exceptions import IncompatibleUnitsError
from cogs.units import BASE_UNITS, UNIT_STRING_MAPPINGS, UNITS_BY_CODE


class ConversionService:
    """
    Service for converting quantities between units.

    Supports:
    - Mass (g, hg, kg), volume (ml, cl, dl, l and kitchen measures),
      count (pz and friends) and portion categories
    - Italian and English spellings of each unit
    - Identical unit strings, known or not, are always compatible
    """

    def __init__(self):
        self._unit_cache = {}

    @staticmethod
    def normalize_unit(unit_string: Optional[str]) -> str:
        if not unit_string:
            return ""
        return unit_string.strip().lower().rstrip(".")

    def resolve_unit(self, unit_string: Optional[str]) -> Optional[dict]:
        """
        Map a unit string (e.g., "grammi", "Kg", "cucchiai") to its table entry.

        Returns:
            The unit definition dict, or None for unknown units.
        """
        normalized = self.normalize_unit(unit_string)
        if not normalized:
            return None

        if normalized in self._unit_cache:
            return self._unit_cache[normalized]

        code = UNIT_STRING_MAPPINGS.get(normalized, normalized)
        unit = UNITS_BY_CODE.get(code)

        self._unit_cache[normalized] = unit
        return unit

    def get_base_unit(self, unit_string: str) -> Optional[str]:
        unit = self.resolve_unit(unit_string)
        if unit is None:
            return None
        return BASE_UNITS[unit["category"]]

    def are_units_compatible(self, unit_a: str, unit_b: str) -> bool:
        """
        True when a quantity in `unit_a` can be expressed in `unit_b`.
        """
        if self.normalize_unit(unit_a) == self.normalize_unit(unit_b):
            return True

        first = self.resolve_unit(unit_a)
        second = self.resolve_unit(unit_b)
        if first is None or second is None:
            return False
        return first["category"] == second["category"]

    def convert(self, quantity, from_unit: str, to_unit: str) -> Decimal:
        """
        Convert a quantity from one unit to another.

        Raises:
            IncompatibleUnitsError: If the units belong to different categories
                or either unit is unknown.
        """
        quantity = Decimal(str(quantity))

        if self.normalize_unit(from_unit) == self.normalize_unit(to_unit):
            return quantity

        if not self.are_units_compatible(from_unit, to_unit):
            raise IncompatibleUnitsError(from_unit=from_unit, to_unit=to_unit)

        source = self.resolve_unit(from_unit)
        target = self.resolve_unit(to_unit)
        return quantity * source["factor"] / target["factor"]

    def to_base_unit(self, quantity, unit_string: str):
        """
        Express a quantity in its category's base unit.

        Returns:
            (quantity, base_unit) tuple.
        """
        base_unit = self.get_base_unit(unit_string)
        if base_unit is None:
            raise IncompatibleUnitsError(
                from_unit=unit_string,
                to_unit="base unit",
                message=f"Unknown unit '{unit_string}'",
            )
        return self.convert(quantity, unit_string, base_unit), base_unit
