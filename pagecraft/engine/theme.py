from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

RGB = Tuple[int, int, int]


# -------------------- Palette --------------------
COLORS: Mapping[str, RGB] = MappingProxyType(
    {
        # brand
        "primary": (37, 99, 235),
        "primary_dark": (29, 78, 216),
        "primary_light": (219, 234, 254),
        "accent": (79, 70, 229),
        "accent_light": (224, 231, 255),
        # neutrals
        "black": (0, 0, 0),
        "white": (255, 255, 255),
        "gray900": (17, 24, 39),
        "gray800": (31, 41, 55),
        "gray700": (55, 65, 81),
        "gray600": (75, 85, 99),
        "gray500": (107, 114, 128),
        "gray400": (156, 163, 175),
        "gray300": (209, 213, 219),
        "gray200": (229, 231, 235),
        "gray100": (243, 244, 246),
        "gray50": (249, 250, 251),
        # semantic
        "success": (22, 163, 74),
        "success_light": (220, 252, 231),
        "warning": (217, 119, 6),
        "warning_light": (254, 243, 199),
        "danger": (220, 38, 38),
        "danger_light": (254, 226, 226),
        "info": (8, 145, 178),
        "info_light": (207, 250, 254),
        # tables
        "table_header_text": (255, 255, 255),
        "table_row_alt": (248, 250, 252),
        "table_row_normal": (255, 255, 255),
        "table_border": (226, 232, 240),
        # sections / chrome
        "section_bg": (241, 245, 249),
        "section_border": (148, 163, 184),
        "header_bg": (15, 23, 42),
        "footer_text": (100, 116, 139),
    }
)


@dataclass(frozen=True)
class FontScale:
    """Point sizes used across every document."""

    doc_title: float = 22
    doc_subtitle: float = 11
    section_title: float = 11
    section_sub: float = 9
    body_large: float = 10
    body: float = 9
    body_small: float = 8
    table_header: float = 8.5
    table_body: float = 8
    table_small: float = 7.5
    label: float = 7.5
    value: float = 8.5
    caption: float = 7
    footer: float = 7.5
    page_number: float = 8
    badge: float = 7


@dataclass(frozen=True)
class Spacing:
    # all values in mm
    section_gap: float = 5
    after_section: float = 4
    info_row_h: float = 5.5
    info_label_w: float = 42
    summary_row_h: float = 5.5
    summary_pad: float = 4
    table_cell_pad_h: float = 2.5
    table_cell_pad_v: float = 1.8
    table_min_row_h: float = 6
    table_line_w: float = 0.2
    divider_h: float = 0.3
    badge_pad_h: float = 3
    badge_pad_v: float = 1.5
    corner_radius: float = 2
    metric_card_h: float = 20
    metric_card_gap: float = 3


@dataclass(frozen=True)
class StatusColors:
    bg: RGB
    text: RGB
    border: RGB


_GREEN = StatusColors(bg=(220, 252, 231), text=(22, 163, 74), border=(134, 239, 172))
_GRAY = StatusColors(bg=(243, 244, 246), text=(107, 114, 128), border=(209, 213, 219))
_AMBER = StatusColors(bg=(254, 243, 199), text=(217, 119, 6), border=(252, 211, 77))
_RED = StatusColors(bg=(254, 226, 226), text=(220, 38, 38), border=(252, 165, 165))
_BLUE = StatusColors(bg=(219, 234, 254), text=(37, 99, 235), border=(147, 197, 253))
_INDIGO = StatusColors(bg=(224, 231, 255), text=(79, 70, 229), border=(165, 180, 252))

DEFAULT_STATUS = StatusColors(bg=(243, 244, 246), text=(55, 65, 81), border=(209, 213, 219))

STATUS_COLORS: Mapping[str, StatusColors] = MappingProxyType(
    {
        "active": _GREEN,
        "inactive": _GRAY,
        "pending": _AMBER,
        "completed": _GREEN,
        "cancelled": _RED,
        "draft": _GRAY,
        "approved": _GREEN,
        "rejected": _RED,
        "in_progress": _BLUE,
        "on_hold": _AMBER,
        "delivered": _GREEN,
        "in_transit": _BLUE,
        # challan lifecycle
        "open": _AMBER,
        "paid": _GREEN,
        "overdue": _RED,
        # estimate versions
        "current": _BLUE,
        "revised": _AMBER,
        # loom shifts
        "day": _AMBER,
        "night": _INDIGO,
        "general": _GRAY,
        "default": DEFAULT_STATUS,
    }
)


@dataclass(frozen=True)
class DocType:
    key: str
    label: str
    accent: RGB
    badge_bg: RGB
    badge_text: RGB
    icon: str


DOC_TYPES: Mapping[str, DocType] = MappingProxyType(
    {
        "ESTIMATE": DocType("ESTIMATE", "ESTIMATE", (37, 99, 235), (219, 234, 254), (29, 78, 216), "EST"),
        "PRODUCTION": DocType(
            "PRODUCTION", "PRODUCTION RECORD", (22, 163, 74), (220, 252, 231), (21, 128, 61), "PRD"
        ),
        "PRODUCTION_ENTRY": DocType(
            "PRODUCTION_ENTRY", "PRODUCTION ENTRY", (79, 70, 229), (224, 231, 255), (67, 56, 202), "ENT"
        ),
        "CHALLAN": DocType("CHALLAN", "DELIVERY CHALLAN", (217, 119, 6), (254, 243, 199), (180, 83, 9), "DCH"),
        "PARTY": DocType("PARTY", "PARTY PROFILE", (8, 145, 178), (207, 250, 254), (14, 116, 144), "PTY"),
    }
)


def resolve_doc_type(key: Optional[str]) -> DocType:
    return DOC_TYPES.get(str(key or "").upper(), DOC_TYPES["ESTIMATE"])


@dataclass(frozen=True)
class Watermark:
    font_size: float = 60
    color: RGB = (200, 200, 200)
    opacity: float = 0.35
    angle: float = 45


@dataclass(frozen=True)
class SignatureStyle:
    line_width: float = 40
    line_color: RGB = (156, 163, 175)
    label_size: float = 7
    label_color: RGB = (107, 114, 128)


@dataclass(frozen=True)
class Theme:
    """
    Everything visual about a document. Frozen: one theme instance is shared
    read-only by every composer for the lifetime of a document.
    """

    colors: Mapping[str, RGB] = field(default_factory=lambda: COLORS)
    fonts: FontScale = field(default_factory=FontScale)
    spacing: Spacing = field(default_factory=Spacing)
    status_colors: Mapping[str, StatusColors] = field(default_factory=lambda: STATUS_COLORS)
    watermark: Watermark = field(default_factory=Watermark)
    signature: SignatureStyle = field(default_factory=SignatureStyle)
    font_name: str = "Helvetica"
    bold_font_name: str = "Helvetica-Bold"

    def color(self, name: str) -> RGB:
        return self.colors[name]

    def status(self, name: Optional[str]) -> StatusColors:
        key = "_".join(str(name or "").lower().split())
        return self.status_colors.get(key) or self.status_colors.get("default", DEFAULT_STATUS)

    def font(self, bold: bool = False) -> str:
        return self.bold_font_name if bold else self.font_name

    def with_overrides(
        self,
        colors: Optional[Mapping[str, RGB]] = None,
        status_colors: Optional[Mapping[str, StatusColors]] = None,
    ) -> "Theme":
        merged_colors: Dict[str, RGB] = dict(self.colors)
        merged_colors.update({k: tuple(v) for k, v in (colors or {}).items()})
        merged_status: Dict[str, StatusColors] = dict(self.status_colors)
        merged_status.update(status_colors or {})
        return replace(
            self,
            colors=MappingProxyType(merged_colors),
            status_colors=MappingProxyType(merged_status),
        )


DEFAULT_THEME = Theme()


def lighten(color: RGB, factor: float = 0.12) -> RGB:
    """Blend toward white; factor 1.0 keeps the colour, 0.0 is white."""
    return tuple(round(c + (255 - c) * (1 - factor)) for c in color)  # type: ignore[return-value]
