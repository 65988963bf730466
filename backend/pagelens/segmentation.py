"""
Segmentation stage - ask the oracle to split the desktop screenshot into
sections. Any failure (no image, oracle down, unparsable reply) yields the
fixed default section list so the report never comes back empty.
"""

from pagelens.config import get_settings
from pagelens.dedup import clean_candidates
from pagelens.models import SectionCandidate
from pagelens.parsing import ParseFailure, parse
from pagelens.retry import RetryFailed, execute, linear_backoff


SEGMENT_PROMPT = """Split this full-page website screenshot into its distinct visual sections, top to bottom.

For each section return:
- "type": a short human-readable label, e.g. "Navigation", "Hero Section", "Features", "Testimonials", "Pricing", "Call to Action", "FAQ", "Footer"
- "coordinates": the section's bounding box as PERCENTAGES of the full screenshot: "top" and "bottom" of the height, "left" and "right" of the width, each between 0 and 100
- "description": one sentence on what the section contains

Sections must not overlap much. Cover the whole page.

Output ONLY a JSON array:
[
  {"type": "Hero Section", "coordinates": {"top": 5, "right": 100, "bottom": 25, "left": 0}, "description": "..."}
]"""


DEFAULT_SECTION_TYPES = [
    ("Hero Section", "Main headline area at the top of the page"),
    ("Value Proposition", "Explanation of what the product offers"),
    ("Features", "Product features and benefits"),
    ("Social Proof", "Testimonials, logos or reviews"),
    ("Call to Action", "Primary conversion prompt"),
    ("Footer", "Links and contact details at the bottom of the page"),
]


def default_sections() -> list:
    """Placeholder sections spaced evenly down the page."""
    step = 100.0 / len(DEFAULT_SECTION_TYPES)
    return [
        SectionCandidate(
            type=name,
            coordinates={
                "top": round(i * step, 2),
                "right": 100,
                "bottom": round((i + 1) * step, 2),
                "left": 0,
            },
            description=description,
        )
        for i, (name, description) in enumerate(DEFAULT_SECTION_TYPES)
    ]


def candidates_from_reply(value) -> list:
    """Turn a decoded oracle reply into SectionCandidates, skipping junk entries."""
    if isinstance(value, dict):
        value = value.get("sections", [])
    if not isinstance(value, list):
        return []

    candidates = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        label = entry.get("type") or entry.get("name")
        if not isinstance(label, str) or not label.strip():
            continue
        coords = entry.get("coordinates")
        if not isinstance(coords, dict):
            coords = {k: entry[k] for k in ("top", "right", "bottom", "left") if k in entry}
        description = entry.get("description")
        candidates.append(SectionCandidate(
            type=label.strip(),
            coordinates=dict(coords),
            description=description.strip() if isinstance(description, str) else "",
        ))
    return candidates


async def identify_sections(oracle, desktop_image: bytes, settings=None) -> list:
    settings = settings or get_settings()

    if not desktop_image:
        print("  [segment] No desktop screenshot - using default sections")
        return default_sections()

    reply = await execute(
        lambda: oracle.complete(SEGMENT_PROMPT, desktop_image),
        max_attempts=settings.oracle_max_attempts,
        backoff=linear_backoff(settings.oracle_backoff_unit),
        label="segment",
    )
    if isinstance(reply, RetryFailed):
        print(f"  [segment] Oracle unavailable ({reply.reason}) - using default sections")
        return default_sections()

    value = parse(reply)
    if isinstance(value, ParseFailure):
        print(f"  [segment] Reply unparsable ({value.reason}) - using default sections")
        return default_sections()

    raw = candidates_from_reply(value)
    if not raw:
        print("  [segment] Reply had no usable sections - using default sections")
        return default_sections()

    cleaned = clean_candidates(raw, dedup=settings.dedup_enabled, threshold=settings.dedup_threshold)
    print(f"  [segment] {len(raw)} sections identified, {len(cleaned)} after cleanup: "
          f"{[c.type for c in cleaned]}")
    return cleaned
