"""
Section candidate cleanup.

The oracle often reports the same section twice with slightly different
boxes. `deduplicate()` collapses those and keeps genuinely repeated sections
further down the page under an "(Additional)" label. `disambiguate()` then
numbers any labels that would still share a section id so every section gets
a distinct name and id.
"""

from pagelens.coordinates import candidate_top
from pagelens.models import SectionCandidate
from pagelens.report import section_id


ADDITIONAL_SUFFIX = " (Additional)"
DEFAULT_THRESHOLD = 20.0  # percent of page height


def base_type(label: str) -> str:
    """Section label without any "(Additional)" suffixes."""
    while label.endswith(ADDITIONAL_SUFFIX):
        label = label[: -len(ADDITIONAL_SUFFIX)]
    return label


def deduplicate(candidates: list, threshold: float = DEFAULT_THRESHOLD) -> list:
    """
    Collapse near-duplicate candidates of the same type.

    Candidates are walked top to bottom. The first of each type is kept as-is.
    A later one is kept only when its top is more than `threshold` points
    below (or above) that first instance, relabelled "<type> (Additional)".
    Running it on its own output returns the same list.
    """
    ordered = sorted(candidates, key=candidate_top)
    first_top = {}
    kept = []

    for cand in ordered:
        key = base_type(cand.type)
        top = candidate_top(cand)

        if key not in first_top:
            first_top[key] = top
            kept.append(cand)
            continue

        if abs(top - first_top[key]) > threshold:
            kept.append(cand.with_type(key + ADDITIONAL_SUFFIX))

    return kept


def disambiguate(candidates: list) -> list:
    """
    Suffix later labels with 2, 3, ... in order whenever their section id
    repeats an earlier one ("Pricing" and "pricing" share an id).
    """
    taken = {section_id(c.type) for c in candidates}
    seen = {}
    result = []

    for cand in candidates:
        label = cand.type
        key = section_id(label)
        if key not in seen:
            seen[key] = 1
            result.append(cand)
            continue

        n = seen[key]
        while True:
            n += 1
            new_label = f"{label} {n}"
            if section_id(new_label) not in taken:
                break
        seen[key] = n
        taken.add(section_id(new_label))
        result.append(cand.with_type(new_label))

    return result


def clean_candidates(candidates: list, dedup: bool = True,
                     threshold: float = DEFAULT_THRESHOLD) -> list:
    if dedup:
        candidates = deduplicate(candidates, threshold=threshold)
    return disambiguate(candidates)
