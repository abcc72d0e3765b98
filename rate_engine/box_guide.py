"""
Box Size Guide

Standard box sizes shown next to the calculator, each drawn as a cube whose
edge (in px) scales with the box's longest side. See
rate_engine.data.reference.box_guide for the formula and defaults.

Also holds the small helpers that read display text from settings.
"""

import math
from dataclasses import dataclass
from typing import Mapping

from .data.reference.box_guide import (
    ALIGN_LEFT_MIN_ENTRIES,
    DEFAULT_TITLE,
    DEFAULTS,
    SCALE_PCT_MAX,
    SCALE_PCT_MIN,
    SETTING_MAX,
    SETTING_MIN,
    TAPE_MAX_PX,
    TAPE_MIN_PX,
    TAPE_RATIO,
)
from .normalize import format_decimal, parse_decimal, parse_integer, text_expr
from .snapshot import ReferenceSnapshot


@dataclass(frozen=True)
class BoxGuideConfig:
    ref_cm: float
    ref_px: float
    min_px: float
    max_px: float
    scale: float


@dataclass(frozen=True)
class BoxGuideEntry:
    key: str
    label: str
    length_cm: float
    width_cm: float
    height_cm: float
    comment: str
    sort: int
    cube_px: int
    tape_px: int

    @property
    def max_side_cm(self) -> float:
        return max(self.length_cm, self.width_cm, self.height_cm)

    @property
    def dimensions(self) -> str:
        sides = (self.length_cm, self.width_cm, self.height_cm)
        return "×".join(format_decimal(side) for side in sides) + " cm"


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _number_setting(settings: Mapping[str, str], key: str) -> float:
    """
    Setting as a number; the default when missing, blank or unparsable.

    A blank value is not read as 0 (which would clamp to SETTING_MIN); an
    admin who clears a field gets the default back.
    """
    raw = str(settings.get(key, "")).strip()
    try:
        value = float(raw)
    except ValueError:
        return DEFAULTS[key]
    return value if math.isfinite(value) else DEFAULTS[key]


def box_guide_config(settings: Mapping[str, str]) -> BoxGuideConfig:
    """
    Scaling configuration from settings.

    Every value is clamped to [SETTING_MIN, SETTING_MAX]; the scale
    percentage to [SCALE_PCT_MIN, SCALE_PCT_MAX]. If min and max px are
    swapped they are put back in order.
    """
    def bounded(key):
        return _clamp(_number_setting(settings, key), SETTING_MIN, SETTING_MAX)

    min_px = bounded("boxGuideMinPx")
    max_px = bounded("boxGuideMaxPx")
    scale_pct = _clamp(_number_setting(settings, "boxGuideScalePct"), SCALE_PCT_MIN, SCALE_PCT_MAX)

    return BoxGuideConfig(
        ref_cm=bounded("boxGuideRefCm"),
        ref_px=bounded("boxGuideRefPx"),
        min_px=min(min_px, max_px),
        max_px=max(min_px, max_px),
        scale=scale_pct / 100,
    )


def cube_size_px(max_side_cm: float, config: BoxGuideConfig) -> int:
    base = max_side_cm / config.ref_cm * config.ref_px
    return _round_half_up(_clamp(base * config.scale, config.min_px, config.max_px))


def tape_size_px(cube_px: int) -> int:
    return int(_clamp(_round_half_up(cube_px * TAPE_RATIO), TAPE_MIN_PX, TAPE_MAX_PX))


def box_guide(snapshot: ReferenceSnapshot) -> list[BoxGuideEntry]:
    """
    Boxes to display, sorted by (sort, key), with cube and tape sizes.

    Rows without a key or label, or with a dimension <= 0, are left out.
    """
    boxes = snapshot.boxes().select(
        text_expr("key").str.to_lowercase().alias("key"),
        text_expr("label").alias("label"),
        text_expr("length_cm").alias("length_cm"),
        text_expr("width_cm").alias("width_cm"),
        text_expr("height_cm").alias("height_cm"),
        text_expr("comment").alias("comment"),
        text_expr("sort").alias("sort"),
    )
    config = box_guide_config(snapshot.settings)

    rows = []
    for row in boxes.iter_rows(named=True):
        length, width, height = (
            parse_decimal(row[side]) for side in ("length_cm", "width_cm", "height_cm")
        )
        if not row["key"] or not row["label"] or min(length, width, height) <= 0:
            continue
        rows.append((parse_integer(row["sort"]), row, length, width, height))
    rows.sort(key=lambda item: (item[0], item[1]["key"]))

    entries = []
    for sort, row, length, width, height in rows:
        cube_px = cube_size_px(max(length, width, height), config)
        entries.append(BoxGuideEntry(
            key=row["key"],
            label=row["label"],
            length_cm=length,
            width_cm=width,
            height_cm=height,
            comment=row["comment"],
            sort=sort,
            cube_px=cube_px,
            tape_px=tape_size_px(cube_px),
        ))
    return entries


def align_left(entries: list[BoxGuideEntry]) -> bool:
    """Guides with many boxes are laid out left-aligned instead of centered."""
    return len(entries) >= ALIGN_LEFT_MIN_ENTRIES


# =============================================================================
# SETTINGS TEXT
# =============================================================================

def site_text(snapshot: ReferenceSnapshot) -> dict[str, str]:
    """Title, subtitle and footer; the title has a default."""
    settings = snapshot.settings
    return {
        "title": settings.get("title") or DEFAULT_TITLE,
        "subtitle": settings.get("subtitle") or "",
        "footer": settings.get("footer") or "",
    }


def notes_lines(snapshot: ReferenceSnapshot) -> list[str]:
    """Notes setting split into lines on "|"."""
    notes = snapshot.settings.get("notes") or ""
    if not notes:
        return []
    return [line.strip() for line in notes.split("|")]


__all__ = [
    "BoxGuideConfig",
    "BoxGuideEntry",
    "box_guide_config",
    "cube_size_px",
    "tape_size_px",
    "box_guide",
    "align_left",
    "site_text",
    "notes_lines",
]
