"""Generative-AI assistance using LangChain chat models with structured output.

All three calls are treated as slow, possibly failing remote functions: any
model failure surfaces as AIServiceError and nothing is retried here.
"""

import os
import time
from typing import Any, Optional
from pydantic import BaseModel, Field
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from src.models.evidence import Evidence
from src.models.listing import ImageAnalysis
from src.models.principal import Principal
from src.services.auth import require_admin, require_principal
from src.services.evidence_store import attach_summary, get_evidence_by_id, get_evidence_for_listing
from src.services.listing_store import update_listing_row
from src.services.revalidation import ADMIN_PATH, Revalidator, listing_paths
from src.utils.config import MarketplaceConfig
from src.utils.errors import AIServiceError, InvalidInputError, NotFoundError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

MAX_DOCUMENT_CHARS = 20000


class PropertyDescription(BaseModel):
    description: str = Field(..., description="Engaging, factual listing description in 2-4 short paragraphs")


class EvidenceSummary(BaseModel):
    summary: str = Field(..., description="Concise summary of the document for an admin reviewer")


DESCRIPTION_PROMPT = """You are a real estate copywriter for a land marketplace in Kenya.
Write a compelling but strictly factual property description from the seller's notes below.
Do not invent features, distances or legal facts that are not in the notes.

Seller notes:
{bullet_points}"""

SUMMARY_PROMPT = """You are assisting an admin who reviews land ownership documents
(title deeds, survey maps, rate clearance certificates).
Summarize the document below: parties, parcel or title numbers, acreage, dates,
and anything that looks inconsistent or missing.

Document:
{document_text}"""

SUSPICIOUS_PROMPT = """You review uploads submitted with a land listing for signs of fraud.
Given the descriptions of the uploaded documents, decide whether the set looks
suspicious (duplicated or mismatched parcel numbers, names that do not match,
implausible dates, placeholder or unreadable files standing in for key documents).
Give a short reason either way.

Documents:
{documents}"""


def get_llm_model() -> BaseChatModel:
    """Get configured LLM model."""
    provider = MarketplaceConfig.LLM_PROVIDER
    model_name = MarketplaceConfig.LLM_MODEL

    logger.debug(
        "Getting LLM model",
        llm_provider=provider,
        llm_model=model_name
    )

    if provider == "anthropic":
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise AIServiceError("ANTHROPIC_API_KEY not set")
        return ChatAnthropic(model=model_name, api_key=api_key)
    elif provider == "openai":
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise AIServiceError("OPENAI_API_KEY not set")
        return ChatOpenAI(model=model_name, api_key=api_key)
    else:
        raise AIServiceError(f"Unsupported LLM provider: {provider}")


async def _structured_call(operation: str, schema: type[BaseModel], prompt: str) -> Any:
    if not MarketplaceConfig.USE_AI_ASSIST:
        raise AIServiceError("AI assistance is disabled")

    model = get_llm_model()
    start_time = time.time()
    logger.info(
        "LLM request started",
        operation=operation,
        llm_provider=MarketplaceConfig.LLM_PROVIDER,
        llm_model=MarketplaceConfig.LLM_MODEL,
        prompt_size_chars=len(prompt)
    )
    try:
        structured_llm = model.with_structured_output(schema)
        result = await structured_llm.ainvoke(prompt)
    except Exception as e:
        logger.error("LLM request failed", operation=operation, error=str(e), exc_info=True)
        raise AIServiceError(f"AI {operation} failed: {e}") from e

    if not isinstance(result, schema):
        raise AIServiceError(f"AI {operation} failed: unexpected response type {type(result).__name__}")

    logger.info(
        "LLM response received",
        operation=operation,
        llm_latency_ms=round((time.time() - start_time) * 1000, 2)
    )
    return result


async def generate_property_description(principal: Optional[Principal], bullet_points: str) -> str:
    """Draft a listing description from the seller's bullet points."""
    principal = require_principal(principal)
    bullet_points = (bullet_points or "").strip()
    if not bullet_points:
        raise InvalidInputError("Bullet points are required to generate a description.")

    result = await _structured_call(
        "description generation",
        PropertyDescription,
        DESCRIPTION_PROMPT.format(bullet_points=bullet_points),
    )
    logger.info("Description generated", requested_by=mask_user_id(principal.uid), length=len(result.description))
    return result.description


async def summarize_evidence(principal: Optional[Principal], document_text: str) -> str:
    require_admin(principal)
    document_text = (document_text or "").strip()
    if not document_text:
        raise InvalidInputError("Document text is required to generate a summary.")

    result = await _structured_call(
        "summarization",
        EvidenceSummary,
        SUMMARY_PROMPT.format(document_text=document_text[:MAX_DOCUMENT_CHARS]),
    )
    return result.summary


async def summarize_and_attach(
    client: Any,
    principal: Optional[Principal],
    evidence_id: str,
    revalidator: Revalidator,
) -> Evidence:
    """Summarize a stored evidence document and save the summary on it."""
    require_admin(principal)
    evidence = await get_evidence_by_id(client, evidence_id)
    summary = await summarize_evidence(principal, evidence.content)
    updated = await attach_summary(client, evidence_id, summary)
    await revalidator.revalidate(*listing_paths(evidence.listing_id))
    return updated


async def flag_suspicious_upload_patterns(
    principal: Optional[Principal],
    document_descriptions: list[str],
) -> ImageAnalysis:
    require_admin(principal)
    descriptions = [d.strip() for d in document_descriptions or [] if d and d.strip()]
    if not descriptions:
        raise InvalidInputError(
            "At least one document description is required to check for suspicious patterns."
        )

    return await _structured_call(
        "fraud detection",
        ImageAnalysis,
        SUSPICIOUS_PROMPT.format(documents="\n".join(f"- {d}" for d in descriptions)),
    )


def describe_evidence(evidence: Evidence) -> str:
    """One-line description of an upload for the fraud check."""
    detail = evidence.summary or evidence.content
    return f"{evidence.type.value}: {evidence.name} - {detail[:300]}"


async def analyze_listing_uploads(
    client: Any,
    principal: Optional[Principal],
    listing_id: str,
    revalidator: Revalidator,
) -> ImageAnalysis:
    """Run the fraud check over a listing's evidence and store the result on the listing."""
    require_admin(principal)
    evidence = await get_evidence_for_listing(client, listing_id)
    if not evidence:
        raise NotFoundError(f"No evidence uploaded for listing: {listing_id}")

    analysis = await flag_suspicious_upload_patterns(principal, [describe_evidence(e) for e in evidence])
    await update_listing_row(client, listing_id, {"image_analysis": analysis.model_dump()})
    logger.info(
        "Upload analysis stored",
        listing_id=listing_id,
        is_suspicious=analysis.is_suspicious,
        document_count=len(evidence)
    )
    await revalidator.revalidate(*listing_paths(listing_id), ADMIN_PATH)
    return analysis
