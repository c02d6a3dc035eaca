"""Tests for AI assistance with a mocked LangChain model."""

import pytest
from unittest.mock import patch
from src.models.listing import ImageAnalysis
from src.services.ai_assistant import (
    EvidenceSummary,
    PropertyDescription,
    analyze_listing_uploads,
    flag_suspicious_upload_patterns,
    generate_property_description,
    get_llm_model,
    summarize_and_attach,
    summarize_evidence,
)
from src.services.evidence_store import EVIDENCE_TABLE
from src.services.listing_store import LISTINGS_TABLE
from src.utils.config import MarketplaceConfig
from src.utils.errors import AIServiceError, AuthenticationRequiredError, InvalidInputError, PermissionDeniedError
from tests.utils.factories import create_evidence_row, create_listing_row


@pytest.mark.unit
@pytest.mark.asyncio
async def test_generate_description(mock_llm_model, seller):
    mock_llm_model.with_structured_output.return_value.ainvoke.return_value = PropertyDescription(
        description="A quiet half-acre plot with a ready title."
    )

    with patch("src.services.ai_assistant.get_llm_model", return_value=mock_llm_model):
        description = await generate_property_description(seller, "- half acre\n- ready title")

    assert description == "A quiet half-acre plot with a ready title."
    mock_llm_model.with_structured_output.assert_called_once_with(PropertyDescription)
    prompt = mock_llm_model.with_structured_output.return_value.ainvoke.call_args[0][0]
    assert "ready title" in prompt


@pytest.mark.unit
@pytest.mark.asyncio
async def test_generate_description_validation(seller):
    with pytest.raises(AuthenticationRequiredError):
        await generate_property_description(None, "- half acre")
    with pytest.raises(InvalidInputError):
        await generate_property_description(seller, "   ")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_model_failure_is_retryable_ai_error(mock_llm_model, seller):
    mock_llm_model.with_structured_output.return_value.ainvoke.side_effect = TimeoutError("upstream timeout")

    with patch("src.services.ai_assistant.get_llm_model", return_value=mock_llm_model):
        with pytest.raises(AIServiceError) as exc_info:
            await generate_property_description(seller, "- half acre")

    assert exc_info.value.retryable is True
    assert mock_llm_model.with_structured_output.return_value.ainvoke.call_count == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_disabled_assist(monkeypatch, seller):
    monkeypatch.setattr(MarketplaceConfig, "USE_AI_ASSIST", False)

    with pytest.raises(AIServiceError):
        await generate_property_description(seller, "- half acre")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_summary_and_flagging_are_admin_only(seller):
    with pytest.raises(PermissionDeniedError):
        await summarize_evidence(seller, "Title No. 123")
    with pytest.raises(PermissionDeniedError):
        await flag_suspicious_upload_patterns(seller, ["title_deed: title.pdf"])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_inputs_rejected(admin):
    with pytest.raises(InvalidInputError):
        await summarize_evidence(admin, "")
    with pytest.raises(InvalidInputError):
        await flag_suspicious_upload_patterns(admin, ["", "  "])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_flag_suspicious_upload_patterns(mock_llm_model, admin):
    mock_llm_model.with_structured_output.return_value.ainvoke.return_value = ImageAnalysis(
        is_suspicious=True, reason="Parcel numbers differ between deed and survey."
    )

    with patch("src.services.ai_assistant.get_llm_model", return_value=mock_llm_model):
        result = await flag_suspicious_upload_patterns(admin, ["title_deed: LR 209/1", "survey_map: LR 210/4"])

    assert result.is_suspicious is True
    assert "Parcel" in result.reason


@pytest.mark.unit
@pytest.mark.asyncio
async def test_summarize_and_attach_stores_summary(mock_llm_model, fake_client, admin, seller, revalidator):
    evidence = create_evidence_row("listing-1", seller.uid, content="Title No. KJD/123 for 0.5 acres")
    fake_client.add(EVIDENCE_TABLE, evidence)
    mock_llm_model.with_structured_output.return_value.ainvoke.return_value = EvidenceSummary(
        summary="Title KJD/123, 0.5 acres."
    )

    with patch("src.services.ai_assistant.get_llm_model", return_value=mock_llm_model):
        updated = await summarize_and_attach(fake_client, admin, evidence["id"], revalidator)

    assert updated.summary == "Title KJD/123, 0.5 acres."
    assert "/listings/listing-1" in revalidator.invalidated
    assert fake_client.get(EVIDENCE_TABLE, evidence["id"])["summary"] == "Title KJD/123, 0.5 acres."


@pytest.mark.unit
@pytest.mark.asyncio
async def test_analyze_listing_uploads_records_result(mock_llm_model, fake_client, admin, seller, revalidator):
    row = create_listing_row(owner_id=seller.uid, status="pending")
    fake_client.add(LISTINGS_TABLE, row)
    fake_client.add(EVIDENCE_TABLE, create_evidence_row(row["id"], seller.uid))
    mock_llm_model.with_structured_output.return_value.ainvoke.return_value = ImageAnalysis(
        is_suspicious=False, reason="Documents are consistent."
    )

    with patch("src.services.ai_assistant.get_llm_model", return_value=mock_llm_model):
        await analyze_listing_uploads(fake_client, admin, row["id"], revalidator)

    stored = fake_client.get(LISTINGS_TABLE, row["id"])
    assert stored["image_analysis"] == {"is_suspicious": False, "reason": "Documents are consistent."}
    assert stored["status"] == "pending"
    assert set(revalidator.invalidated) >= {f"/admin/listings/{row['id']}", "/admin"}


@pytest.mark.unit
def test_get_llm_model_unknown_provider(monkeypatch):
    monkeypatch.setattr(MarketplaceConfig, "LLM_PROVIDER", "mystery")

    with pytest.raises(AIServiceError):
        get_llm_model()


@pytest.mark.unit
def test_get_llm_model_requires_key(monkeypatch):
    monkeypatch.setattr(MarketplaceConfig, "LLM_PROVIDER", "openai")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(AIServiceError):
        get_llm_model()
