from __future__ import annotations

from enum import StrEnum

from markupsafe import Markup, escape


class Icon(StrEnum):
    PACKAGE = "Package"
    PACKAGE_OPEN = "PackageOpen"
    ALERT_TRIANGLE = "AlertTriangle"
    ALERT_CIRCLE = "AlertCircle"
    X_CIRCLE = "XCircle"
    PLUS_CIRCLE = "PlusCircle"
    SEARCH = "Search"
    FILTER = "Filter"
    DOWNLOAD = "Download"
    EDIT = "Edit"
    REFRESH = "RefreshCw"
    ARROW_LEFT = "ArrowLeft"
    ARROW_RIGHT = "ArrowRight"
    EYE = "Eye"
    SAVE = "Save"
    CLOSE = "X"
    CHECK = "Check"
    SUN = "Sun"
    MOON = "Moon"
    LOG_IN = "LogIn"
    LOG_OUT = "LogOut"
    USER_PLUS = "UserPlus"
    HOME = "Home"
    FILE_QUESTION = "FileQuestion"
    SMILE = "Smile"


FALLBACK_ICON = Icon.SMILE

# One glyph per Icon member; tests check the mapping stays exhaustive.
GLYPHS: dict[Icon, str] = {
    Icon.PACKAGE: "📦",
    Icon.PACKAGE_OPEN: "📂",
    Icon.ALERT_TRIANGLE: "⚠",
    Icon.ALERT_CIRCLE: "❗",
    Icon.X_CIRCLE: "⊗",
    Icon.PLUS_CIRCLE: "⊕",
    Icon.SEARCH: "🔍",
    Icon.FILTER: "⛛",
    Icon.DOWNLOAD: "⤓",
    Icon.EDIT: "✎",
    Icon.REFRESH: "↻",
    Icon.ARROW_LEFT: "←",
    Icon.ARROW_RIGHT: "→",
    Icon.EYE: "👁",
    Icon.SAVE: "💾",
    Icon.CLOSE: "✕",
    Icon.CHECK: "✓",
    Icon.SUN: "☀",
    Icon.MOON: "☾",
    Icon.LOG_IN: "⇥",
    Icon.LOG_OUT: "⇤",
    Icon.USER_PLUS: "👤",
    Icon.HOME: "⌂",
    Icon.FILE_QUESTION: "❓",
    Icon.SMILE: "☺",
}


def resolve_icon(name: str | Icon) -> Icon:
    if isinstance(name, Icon):
        return name
    try:
        return Icon(name)
    except ValueError:
        return FALLBACK_ICON


def render_icon(name: str | Icon, css_class: str = "icon") -> Markup:
    icon = resolve_icon(name)
    return Markup('<span class="{}" data-icon="{}" aria-hidden="true">{}</span>').format(
        escape(css_class), icon.value, GLYPHS[icon]
    )
