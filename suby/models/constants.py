"""Domain constants and enumerations for validation.

Billing cycles and categories are plain tagged enumerations; presentation
metadata (icon, colour) lives in a side table so scheduling code never
depends on it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List


class BillingCycle(str, Enum):
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class Category(str, Enum):
    ENTERTAINMENT = "Entertainment"
    PRODUCTIVITY = "Productivity"
    UTILITIES = "Utilities"
    HEALTH = "Health & Fitness"
    EDUCATION = "Education"
    FINANCE = "Finance"
    SHOPPING = "Shopping"
    OTHER = "Other"


@dataclass(frozen=True)
class CategoryDisplay:
    icon: str
    color_hex: str


CATEGORY_DISPLAY: Dict[Category, CategoryDisplay] = {
    Category.ENTERTAINMENT: CategoryDisplay("tv.fill", "#FF2D55"),
    Category.PRODUCTIVITY: CategoryDisplay("briefcase.fill", "#007AFF"),
    Category.UTILITIES: CategoryDisplay("bolt.fill", "#FF9F0A"),
    Category.HEALTH: CategoryDisplay("heart.fill", "#32D74B"),
    Category.EDUCATION: CategoryDisplay("book.fill", "#AF52DE"),
    Category.FINANCE: CategoryDisplay("dollarsign.circle.fill", "#30B0C7"),
    Category.SHOPPING: CategoryDisplay("cart.fill", "#FF375F"),
    Category.OTHER: CategoryDisplay("square.grid.2x2.fill", "#5E5CE6"),
}

# Currencies offered for entry; any other ISO-like code is still accepted.
CURRENCIES: List[str] = ["USD", "SGD", "EUR", "GBP"]

COLOR_PALETTE: List[str] = [
    "#5E5CE6",
    "#FF2D55",
    "#30B0C7",
    "#FF9F0A",
    "#32D74B",
    "#AF52DE",
    "#FF375F",
    "#007AFF",
    "#FFD60A",
]
DEFAULT_COLOR_HEX = "#5E5CE6"
DEFAULT_ICON_NAME = "creditcard.fill"


def display_for(category: Category) -> CategoryDisplay:
    return CATEGORY_DISPLAY.get(
        category, CategoryDisplay(DEFAULT_ICON_NAME, DEFAULT_COLOR_HEX)
    )
