"""Tests for rule-based badge suggestion."""

import pytest
from src.models.evidence import EvidenceDraft, EvidenceType
from src.models.listing import BadgeValue
from src.services.badge_suggestion import document_kinds, suggest_badge


def _doc(evidence_type: EvidenceType, name: str = "doc.pdf") -> EvidenceDraft:
    return EvidenceDraft(type=evidence_type, name=name, storage_path=f"evidence/{name}")


FULL_SET = [
    _doc(EvidenceType.TITLE_DEED),
    _doc(EvidenceType.SURVEY_MAP),
    _doc(EvidenceType.RATE_CLEARANCE),
]


@pytest.mark.unit
def test_gold_needs_all_three_documents_and_three_photos():
    suggestion = suggest_badge(FULL_SET, 3)

    assert suggestion.badge == BadgeValue.GOLD
    assert "3 photos" in suggestion.reason


@pytest.mark.unit
def test_full_documents_with_two_photos_is_silver():
    suggestion = suggest_badge(FULL_SET, 2)

    assert suggestion.badge == BadgeValue.SILVER
    assert "Gold" in suggestion.reason


@pytest.mark.unit
@pytest.mark.parametrize("evidence_type", [EvidenceType.TITLE_DEED, EvidenceType.SURVEY_MAP])
def test_silver_with_deed_or_survey(evidence_type):
    suggestion = suggest_badge([_doc(evidence_type)], 2)

    assert suggestion.badge == BadgeValue.SILVER
    assert "missing" in suggestion.reason


@pytest.mark.unit
def test_core_document_with_one_photo_is_bronze():
    suggestion = suggest_badge([_doc(EvidenceType.TITLE_DEED)], 1)

    assert suggestion.badge == BadgeValue.BRONZE
    assert "Silver" in suggestion.reason


@pytest.mark.unit
def test_rate_clearance_only_is_bronze_even_with_many_photos():
    suggestion = suggest_badge([_doc(EvidenceType.RATE_CLEARANCE)], 10)

    assert suggestion.badge == BadgeValue.BRONZE
    assert "no title deed or survey" in suggestion.reason


@pytest.mark.unit
def test_no_evidence_is_none():
    suggestion = suggest_badge([], 12)

    assert suggestion.badge == BadgeValue.NONE
    assert suggestion.reason == "No supporting documents uploaded."


@pytest.mark.unit
def test_other_uploads_count_by_file_name():
    evidence = [
        _doc(EvidenceType.OTHER, "scanned_title_deed.pdf"),
        _doc(EvidenceType.OTHER, "beacon-survey-plan.jpg"),
        _doc(EvidenceType.OTHER, "county rates receipt.pdf"),
    ]

    assert document_kinds(evidence) == {
        EvidenceType.TITLE_DEED,
        EvidenceType.SURVEY_MAP,
        EvidenceType.RATE_CLEARANCE,
    }
    assert suggest_badge(evidence, 4).badge == BadgeValue.GOLD


@pytest.mark.unit
def test_unrelated_other_names_do_not_count():
    evidence = [_doc(EvidenceType.OTHER, "corporate brochure.pdf"), _doc(EvidenceType.OTHER, "separate notes.txt")]

    assert document_kinds(evidence) == set()
    assert suggest_badge(evidence, 5).badge == BadgeValue.BRONZE


@pytest.mark.unit
def test_suggestion_is_deterministic():
    evidence = [_doc(EvidenceType.TITLE_DEED), _doc(EvidenceType.OTHER, "rates.pdf")]

    assert suggest_badge(evidence, 2) == suggest_badge(list(evidence), 2)
