"""
Luster Legacy pricing tables and business constants

Static lookup values used when the database has no modifier for a metal or
stone, plus the option tables shown in the product customizer.

All prices are INR unless the name says otherwise.
"""
import re
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional


# ================================================================================
# BUSINESS CONSTANTS
# ================================================================================

OVERHEAD_RATE = 0.25
ADVANCE_RATE = 0.5

# Carat weight used when a stone selection does not give one
DEFAULT_CARATS = {
    "primary": 1.0,
    "secondary": 0.5,
    "other": 0.25,
}

DEFAULT_METAL_WEIGHT_GRAMS = 5.0

SUPPORTED_CURRENCIES = ("USD", "INR")

# Flat shipping fee, in the order currency
SHIPPING_FEES: Dict[str, int] = {
    "USD": 30,
    "INR": 1500,
}

# Country a shipping address must be in to pay in a given currency
CURRENCY_COUNTRY: Dict[str, str] = {
    "USD": "US",
    "INR": "IN",
}

CONSULTATION_FEE_USD = 150

# Relative difference between client and server price that gets flagged
PRICE_DRIFT_TOLERANCE = 0.02

TROY_OUNCE_GRAMS = 31.1035


# ================================================================================
# METAL MODIFIERS (fraction of the 24K gold price)
# ================================================================================

FALLBACK_METAL_MODIFIERS: Dict[str, float] = {
    "24K": 1.0,
    "22K": 0.91,
    "18K": 0.75,
    "14K": 0.58,
}

DEFAULT_METAL_MODIFIER = FALLBACK_METAL_MODIFIERS["18K"]

_KARAT_PATTERN = re.compile(r"(\d{2})\s*k(?:t|arat)?", re.IGNORECASE)


def karat_from_name(name: Optional[str]) -> Optional[str]:
    """Extract '18K' style karat from names like '18k Yellow Gold' or '22 KT'"""
    if not name:
        return None
    for match in _KARAT_PATTERN.finditer(name):
        karat = f"{match.group(1)}K"
        if karat in FALLBACK_METAL_MODIFIERS:
            return karat
    return None


def metal_modifier_from_name(name: Optional[str]) -> float:
    """Modifier for a metal name; unknown metals price as 18K"""
    karat = karat_from_name(name)
    if karat is None:
        return DEFAULT_METAL_MODIFIER
    return FALLBACK_METAL_MODIFIERS[karat]


# ================================================================================
# STONE PRICES (INR per carat)
# ================================================================================

DEFAULT_STONE_PRICE_PER_CARAT = 500


def fallback_price_per_carat(name: Optional[str]) -> int:
    """Per-carat price estimated from the stone name"""
    n = (name or "").lower()

    if "diamond" in n:
        if "lab" in n or "synthetic" in n:
            return 20000
        return 56000

    if "polki" in n:
        if "lab" in n:
            return 7000
        return 15000

    if "ruby" in n or "sapphire" in n:
        return 3000
    if "emerald" in n:
        return 3500
    if "tanzanite" in n:
        return 1500

    if "amethyst" in n or "quartz" in n or "morganite" in n:
        return 1500

    if "pearl" in n:
        if "south sea" in n:
            return 300
        return 100

    if "cz" in n or "swarovski" in n:
        return 1000

    return DEFAULT_STONE_PRICE_PER_CARAT


# ================================================================================
# CUSTOMIZER OPTIONS
# ================================================================================

@dataclass
class CustomizerOption:
    """One selectable metal or stone in the product customizer"""
    id: str
    name: str
    price_multiplier: float

    def to_dict(self) -> dict:
        return asdict(self)


CUSTOMIZER_METALS: List[CustomizerOption] = [
    CustomizerOption(id="22k-gold", name="22K Gold", price_multiplier=1.2),
    CustomizerOption(id="18k-gold", name="18K Gold", price_multiplier=1.0),
    CustomizerOption(id="14k-gold", name="14K Gold", price_multiplier=0.8),
]

CUSTOMIZER_STONES: List[CustomizerOption] = [
    CustomizerOption(id="lab-created-diamond", name="Lab Created Diamond", price_multiplier=1.3),
    CustomizerOption(id="lab-created-gems", name="Lab Created Gems", price_multiplier=0.8),
    CustomizerOption(id="lab-created-polki", name="Lab Created Polki", price_multiplier=1.2),
    CustomizerOption(id="natural-diamond", name="Natural Diamond", price_multiplier=2.0),
    CustomizerOption(id="natural-polki", name="Natural Polki", price_multiplier=1.5),
    CustomizerOption(id="onyx", name="Onyx", price_multiplier=0.9),
    CustomizerOption(id="precious-gems", name="Precious Gems (Ruby, Emerald, Sapphire, etc)", price_multiplier=1.4),
    CustomizerOption(id="semi-precious-gems", name="Semi Precious Gems (Amethyst, Quartz, Morganite, etc)", price_multiplier=1.0),
]


def get_customizer_metal(metal_id: Optional[str]) -> CustomizerOption:
    """Metal option by id; unknown ids resolve to the first option"""
    for option in CUSTOMIZER_METALS:
        if option.id == metal_id:
            return option
    return CUSTOMIZER_METALS[0]


def get_customizer_stone(stone_id: Optional[str]) -> CustomizerOption:
    """Stone option by id; unknown ids resolve to the first option"""
    for option in CUSTOMIZER_STONES:
        if option.id == stone_id:
            return option
    return CUSTOMIZER_STONES[0]
