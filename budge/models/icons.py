"""
Category Icons

Category records carry an icon identifier. Identifiers are resolved into
`CategoryIcon` members when a record is loaded, and each member has an
explicit renderer in `ICON_RENDERERS`. There is no lookup by arbitrary
name at render time.
"""

from enum import Enum
from typing import Callable, Optional


class CategoryIcon(str, Enum):
    """Icon identifiers used by the default and user-defined categories."""
    # Expense
    UTENSILS = "Utensils"
    CAR = "Car"
    SHOPPING_BAG = "ShoppingBag"
    FILM = "Film"
    RECEIPT = "Receipt"
    HEART = "Heart"
    GRADUATION_CAP = "GraduationCap"
    PLANE = "Plane"
    SPARKLES = "Sparkles"
    MORE_HORIZONTAL = "MoreHorizontal"
    # Income
    BRIEFCASE = "Briefcase"
    CODE = "Code"
    TRENDING_UP = "TrendingUp"
    STORE = "Store"
    GIFT = "Gift"
    DOLLAR_SIGN = "DollarSign"


# Used for missing or unrecognised identifiers
FALLBACK_ICON = CategoryIcon.RECEIPT

IconRenderer = Callable[[Optional[str]], str]


def _glyph(symbol: str) -> IconRenderer:
    def render(color: Optional[str] = None) -> str:
        if color:
            return f"{symbol} [{color}]"
        return symbol
    return render


ICON_RENDERERS: dict[CategoryIcon, IconRenderer] = {
    CategoryIcon.UTENSILS: _glyph("🍴"),
    CategoryIcon.CAR: _glyph("🚗"),
    CategoryIcon.SHOPPING_BAG: _glyph("🛍"),
    CategoryIcon.FILM: _glyph("🎬"),
    CategoryIcon.RECEIPT: _glyph("🧾"),
    CategoryIcon.HEART: _glyph("❤"),
    CategoryIcon.GRADUATION_CAP: _glyph("🎓"),
    CategoryIcon.PLANE: _glyph("✈"),
    CategoryIcon.SPARKLES: _glyph("✨"),
    CategoryIcon.MORE_HORIZONTAL: _glyph("…"),
    CategoryIcon.BRIEFCASE: _glyph("💼"),
    CategoryIcon.CODE: _glyph("⌨"),
    CategoryIcon.TRENDING_UP: _glyph("📈"),
    CategoryIcon.STORE: _glyph("🏪"),
    CategoryIcon.GIFT: _glyph("🎁"),
    CategoryIcon.DOLLAR_SIGN: _glyph("$"),
}


def resolve_icon(value: Optional[str]) -> Optional[CategoryIcon]:
    """
    Resolve a stored icon identifier.

    None stays None. Unknown identifiers resolve to FALLBACK_ICON.
    """
    if value is None or isinstance(value, CategoryIcon):
        return value
    try:
        return CategoryIcon(value)
    except ValueError:
        return FALLBACK_ICON


def render_icon(icon: Optional[CategoryIcon], color: Optional[str] = None) -> str:
    """Render an icon, using the fallback renderer when no icon is set."""
    return ICON_RENDERERS[icon or FALLBACK_ICON](color)
