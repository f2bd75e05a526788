"""
Fixed unit table for recipe quantities.

Every unit belongs to one category and carries its factor to the category's
base unit (g, ml, pz, porzione). Portions are a category of their own and
never convert to pieces.
"""
from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class UnitCategory(models.TextChoices):
    MASS = "mass", _("Mass")
    VOLUME = "volume", _("Volume")
    COUNT = "count", _("Count")
    PORTION = "portion", _("Portion")


BASE_UNITS = {
    UnitCategory.MASS: "g",
    UnitCategory.VOLUME: "ml",
    UnitCategory.COUNT: "pz",
    UnitCategory.PORTION: "porzione",
}


DEFAULT_UNITS = [
    # Mass (base: gram)
    {"code": "g", "name": "grammo", "category": UnitCategory.MASS, "factor": Decimal("1")},
    {"code": "hg", "name": "etto", "category": UnitCategory.MASS, "factor": Decimal("100")},
    {"code": "kg", "name": "chilogrammo", "category": UnitCategory.MASS, "factor": Decimal("1000")},

    # Volume (base: millilitre)
    {"code": "ml", "name": "millilitro", "category": UnitCategory.VOLUME, "factor": Decimal("1")},
    {"code": "cl", "name": "centilitro", "category": UnitCategory.VOLUME, "factor": Decimal("10")},
    {"code": "dl", "name": "decilitro", "category": UnitCategory.VOLUME, "factor": Decimal("100")},
    {"code": "l", "name": "litro", "category": UnitCategory.VOLUME, "factor": Decimal("1000")},
    {"code": "cucchiaino", "name": "cucchiaino", "category": UnitCategory.VOLUME, "factor": Decimal("5")},
    {"code": "cucchiaio", "name": "cucchiaio", "category": UnitCategory.VOLUME, "factor": Decimal("15")},
    {"code": "bicchiere", "name": "bicchiere", "category": UnitCategory.VOLUME, "factor": Decimal("200")},
    {"code": "tazza", "name": "tazza", "category": UnitCategory.VOLUME, "factor": Decimal("250")},

    # Count (base: piece)
    {"code": "pz", "name": "pezzo", "category": UnitCategory.COUNT, "factor": Decimal("1")},
    {"code": "spicchio", "name": "spicchio", "category": UnitCategory.COUNT, "factor": Decimal("1")},
    {"code": "foglia", "name": "foglia", "category": UnitCategory.COUNT, "factor": Decimal("1")},
    {"code": "mazzo", "name": "mazzo", "category": UnitCategory.COUNT, "factor": Decimal("1")},

    # Portion
    {"code": "porzione", "name": "porzione", "category": UnitCategory.PORTION, "factor": Decimal("1")},
]


# Common spellings mapped to canonical codes
UNIT_STRING_MAPPINGS = {
    # Mass
    "g": "g",
    "gr": "g",
    "grammo": "g",
    "grammi": "g",
    "gram": "g",
    "grams": "g",
    "hg": "hg",
    "etto": "hg",
    "etti": "hg",
    "kg": "kg",
    "chilo": "kg",
    "chili": "kg",
    "kilo": "kg",
    "chilogrammo": "kg",
    "chilogrammi": "kg",
    # Volume
    "ml": "ml",
    "millilitro": "ml",
    "millilitri": "ml",
    "cl": "cl",
    "dl": "dl",
    "l": "l",
    "lt": "l",
    "litro": "l",
    "litri": "l",
    "liter": "l",
    "cucchiaino": "cucchiaino",
    "cucchiaini": "cucchiaino",
    "tsp": "cucchiaino",
    "cucchiaio": "cucchiaio",
    "cucchiai": "cucchiaio",
    "tbsp": "cucchiaio",
    "bicchiere": "bicchiere",
    "bicchieri": "bicchiere",
    "tazza": "tazza",
    "tazze": "tazza",
    "cup": "tazza",
    # Count
    "pz": "pz",
    "pezzo": "pz",
    "pezzi": "pz",
    "pc": "pz",
    "pcs": "pz",
    "spicchio": "spicchio",
    "spicchi": "spicchio",
    "foglia": "foglia",
    "foglie": "foglia",
    "mazzo": "mazzo",
    "mazzi": "mazzo",
    # Portion
    "porzione": "porzione",
    "porzioni": "porzione",
    "portion": "porzione",
    "portions": "porzione",
}


UNITS_BY_CODE = {unit["code"]: unit for unit in DEFAULT_UNITS}
