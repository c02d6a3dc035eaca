"""Rule-based trust badge suggestion from evidence coverage and photo count.

The suggestion is advisory. It never writes the authoritative ``badge``;
an admin has to accept it explicitly.
"""

import re
from typing import Iterable

from src.models.evidence import Evidence, EvidenceDraft, EvidenceType
from src.models.listing import BadgeSuggestion, BadgeValue

GOLD_MIN_PHOTOS = 3
SILVER_MIN_PHOTOS = 2

# Name patterns that make an "other" upload count as a typed document
_EQUIVALENT_NAME_PATTERNS = {
    EvidenceType.TITLE_DEED: re.compile(r"(?<![a-z])(title|deed)(?![a-z])|lease.?certificate|green.?card", re.IGNORECASE),
    EvidenceType.SURVEY_MAP: re.compile(r"survey|beacon|mutation|deed.?plan|(?<![a-z])rim(?![a-z])", re.IGNORECASE),
    EvidenceType.RATE_CLEARANCE: re.compile(r"(?<![a-z])rates?(?![a-z])|clearance|land.?rent", re.IGNORECASE),
}

_LABELS = {
    EvidenceType.TITLE_DEED: "title deed",
    EvidenceType.SURVEY_MAP: "survey",
    EvidenceType.RATE_CLEARANCE: "rate clearance",
}


def document_kinds(evidence: Iterable[Evidence | EvidenceDraft]) -> set[EvidenceType]:
    """Document types covered by the evidence set, counting name-based equivalents."""
    kinds: set[EvidenceType] = set()
    for item in evidence:
        if item.type != EvidenceType.OTHER:
            kinds.add(item.type)
            continue
        for kind, pattern in _EQUIVALENT_NAME_PATTERNS.items():
            if pattern.search(item.name or ""):
                kinds.add(kind)
    return kinds


def _describe(kinds: set[EvidenceType], wanted: tuple[EvidenceType, ...]) -> tuple[list[str], list[str]]:
    present = [_LABELS[k] for k in wanted if k in kinds]
    missing = [_LABELS[k] for k in wanted if k not in kinds]
    return present, missing


def suggest_badge(evidence: list[Evidence | EvidenceDraft], photo_count: int) -> BadgeSuggestion:
    """Suggest a tier, highest first; the first matching tier wins."""
    evidence = list(evidence)
    photo_count = max(0, int(photo_count))
    kinds = document_kinds(evidence)
    all_kinds = (EvidenceType.TITLE_DEED, EvidenceType.SURVEY_MAP, EvidenceType.RATE_CLEARANCE)
    present, missing = _describe(kinds, all_kinds)

    if not missing and photo_count >= GOLD_MIN_PHOTOS:
        return BadgeSuggestion(
            badge=BadgeValue.GOLD,
            reason=f"Title deed, survey and rate clearance provided with {photo_count} photos.",
        )

    has_core_document = EvidenceType.TITLE_DEED in kinds or EvidenceType.SURVEY_MAP in kinds
    if has_core_document and photo_count >= SILVER_MIN_PHOTOS:
        gaps = [f"missing {', '.join(missing)}"] if missing else []
        if photo_count < GOLD_MIN_PHOTOS:
            gaps.append(f"{GOLD_MIN_PHOTOS}+ photos needed for Gold")
        return BadgeSuggestion(
            badge=BadgeValue.SILVER,
            reason=f"Provided {', '.join(present)} with {photo_count} photos; {'; '.join(gaps)}.",
        )

    if evidence:
        if has_core_document:
            gap = f"{SILVER_MIN_PHOTOS}+ photos needed for Silver (have {photo_count})"
        else:
            gap = "no title deed or survey provided"
        return BadgeSuggestion(
            badge=BadgeValue.BRONZE,
            reason=f"{len(evidence)} supporting document(s) uploaded; {gap}.",
        )

    return BadgeSuggestion(badge=BadgeValue.NONE, reason="No supporting documents uploaded.")
