"""
Percentage boxes from the oracle -> pixel clip regions on the page.

Clamping policy, applied in this order:
  1. each edge is coerced to a float; missing or non-numeric edges default to
     top=0, left=0, right=100, bottom=100
  2. each edge is clamped into [0, 100]
  3. inverted pairs (bottom < top, right < left) are swapped
  4. pixels = floor(pct * dimension / 100) per edge
  5. width/height are raised to the minimum clip size
  6. width/height are capped at the page size (never below the minimum) and
     x/y are shifted back so the clip ends inside the page
"""

import math

from pagelens.models import NormalizedSection, PageDimensions, PixelClip, SectionCandidate


MIN_CLIP_SIZE = 10

EDGE_DEFAULTS = {"top": 0.0, "right": 100.0, "bottom": 100.0, "left": 0.0}


def coerce_percent(value, default: float) -> float:
    """Oracle percentage -> float in [0, 100]."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        # JSON integers can be too large for a float
        return float(min(100, max(0, value)))
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
    try:
        pct = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(pct):
        return default
    return min(100.0, max(0.0, pct))


def candidate_edges(candidate: SectionCandidate) -> dict:
    coords = candidate.coordinates if isinstance(candidate.coordinates, dict) else {}
    edges = {name: coerce_percent(coords.get(name), default) for name, default in EDGE_DEFAULTS.items()}
    if edges["bottom"] < edges["top"]:
        edges["top"], edges["bottom"] = edges["bottom"], edges["top"]
    if edges["right"] < edges["left"]:
        edges["left"], edges["right"] = edges["right"], edges["left"]
    return edges


def candidate_top(candidate: SectionCandidate) -> float:
    return candidate_edges(candidate)["top"]


def _fit(start: int, size: int, limit: int, min_size: int) -> tuple:
    size = max(size, min_size)
    if limit >= min_size:
        size = min(size, limit)
        start = max(0, min(start, limit - size))
    else:
        start = 0
    return start, size


def normalize(candidate: SectionCandidate, dims: PageDimensions, min_size: int = MIN_CLIP_SIZE) -> PixelClip:
    edges = candidate_edges(candidate)

    top = math.floor(edges["top"] * dims.height / 100)
    bottom = math.floor(edges["bottom"] * dims.height / 100)
    left = math.floor(edges["left"] * dims.width / 100)
    right = math.floor(edges["right"] * dims.width / 100)

    x, width = _fit(left, right - left, dims.width, min_size)
    y, height = _fit(top, bottom - top, dims.height, min_size)
    return PixelClip(x=x, y=y, width=width, height=height)


def normalize_section(candidate: SectionCandidate, dims: PageDimensions,
                      min_size: int = MIN_CLIP_SIZE) -> NormalizedSection:
    return NormalizedSection(
        type=candidate.type,
        clip=normalize(candidate, dims, min_size=min_size),
        description=candidate.description,
    )
