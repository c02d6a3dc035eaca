"""Buyer/seller conversations scoped to a listing.

Status lifecycle: ``new`` until the participant who did not open the
conversation replies (``responded``); either participant may close it and
reopen it later. Messages are append-only and read in timestamp order.

Live updates are exposed as :class:`MessageSubscription`, an async iterator
that polls the store and stops when unsubscribed.
"""

import asyncio
from collections import deque
from typing import Any, Optional
from pydantic import ValidationError

from src.models.conversation import Conversation, ConversationStatus, Message, Participant
from src.models.principal import Principal
from src.services.auth import require_principal
from src.services.listing_store import get_listing_for_viewer
from src.services.supabase_client import execute, start_after_clause
from src.utils.config import MarketplaceConfig
from src.utils.errors import InvalidInputError, MalformedRecordError, NotFoundError, PermissionDeniedError
from src.utils.ids import generate_document_id
from src.utils.logging import get_structured_logger, loggable_text, mask_user_id
from src.utils.timestamps import to_datetime, to_store, utc_now

logger = get_structured_logger(__name__)

CONVERSATIONS_TABLE = "conversations"
MESSAGES_TABLE = "messages"
MAX_MESSAGE_LENGTH = 4000


def to_conversation(row: dict[str, Any]) -> Conversation:
    if not row:
        raise MalformedRecordError("Conversation document data is empty")
    data = dict(row)
    try:
        data["updated_at"] = to_datetime(data.get("updated_at"))
        last_message = data.get("last_message")
        if last_message:
            data["last_message"] = {**last_message, "timestamp": to_datetime(last_message.get("timestamp"))}
        return Conversation.model_validate(data)
    except (ValidationError, ValueError) as e:
        raise MalformedRecordError(f"Malformed conversation record {row.get('id')}: {e}") from e


def to_message(row: dict[str, Any]) -> Message:
    if not row:
        raise MalformedRecordError("Message document data is empty")
    data = dict(row)
    try:
        data["timestamp"] = to_datetime(data.get("timestamp"))
        return Message.model_validate(data)
    except (ValidationError, ValueError) as e:
        raise MalformedRecordError(f"Malformed message record {row.get('id')}: {e}") from e


def derive_conversation_status(conversation: Conversation, viewer_id: Optional[str] = None) -> ConversationStatus:
    """Status for display; used when older records carry no stored status."""
    if conversation.status is not None:
        return conversation.status
    if conversation.last_message is None or not viewer_id:
        return ConversationStatus.NEW
    if conversation.last_message.sender_id == viewer_id:
        return ConversationStatus.RESPONDED
    return ConversationStatus.NEW


async def get_conversation(client: Any, principal: Optional[Principal], conversation_id: str) -> Conversation:
    """Load a conversation the principal participates in."""
    principal = require_principal(principal)
    rows = execute(
        client.table(CONVERSATIONS_TABLE).select("*").eq("id", conversation_id).limit(1),
        "get conversation",
    )
    if not rows:
        raise NotFoundError(f"Conversation not found: {conversation_id}")
    conversation = to_conversation(rows[0])
    if not conversation.has_participant(principal.uid):
        raise PermissionDeniedError("Only participants may access this conversation.")
    return conversation


async def list_conversations(client: Any, principal: Optional[Principal]) -> list[Conversation]:
    """Conversations of the principal, most recently active first."""
    principal = require_principal(principal)
    rows = execute(
        client.table(CONVERSATIONS_TABLE).select("*").contains("participant_ids", [principal.uid])
        .order("updated_at", desc=True),
        "list conversations",
    )
    conversations = []
    for row in rows:
        try:
            conversations.append(to_conversation(row))
        except MalformedRecordError as e:
            logger.error("Skipping malformed conversation", conversation_id=row.get("id"), error=str(e))
    return conversations


async def get_or_create_conversation(client: Any, principal: Optional[Principal], listing_id: str) -> Conversation:
    """Open (or return the existing) thread between the caller and the listing's seller."""
    principal = require_principal(principal)
    listing = await get_listing_for_viewer(client, principal, listing_id)
    if listing.owner_id == principal.uid:
        raise InvalidInputError("You cannot start a conversation about your own listing.")

    rows = execute(
        client.table(CONVERSATIONS_TABLE).select("*")
        .eq("listing_id", listing_id).eq("initiator_id", principal.uid).limit(1),
        "find conversation",
    )
    if rows:
        return to_conversation(rows[0])

    thumbnail = listing.thumbnail
    row = {
        "id": generate_document_id(),
        "listing_id": listing.id,
        "listing_title": listing.title,
        "listing_image": thumbnail.url if thumbnail else None,
        "participant_ids": [principal.uid, listing.owner_id],
        "participants": {
            principal.uid: Participant(
                display_name=principal.display_name or "Buyer",
                photo_url=principal.photo_url or None,
            ).model_dump(),
            listing.owner_id: Participant(
                display_name=listing.seller.name,
                photo_url=listing.seller.avatar_url,
            ).model_dump(),
        },
        "initiator_id": principal.uid,
        "last_message": None,
        "status": ConversationStatus.NEW.value,
        "updated_at": to_store(utc_now()),
    }
    inserted = execute(client.table(CONVERSATIONS_TABLE).insert(row), "create conversation")
    if not inserted:
        raise MalformedRecordError("Failed to create conversation: no data returned")

    logger.info(
        "Conversation created",
        conversation_id=row["id"],
        listing_id=listing_id,
        buyer=mask_user_id(principal.uid),
        seller=mask_user_id(listing.owner_id)
    )
    return to_conversation(inserted[0])


async def send_message(
    client: Any,
    principal: Optional[Principal],
    conversation_id: str,
    text: str,
) -> Message:
    """Append a message. Failures propagate; nothing is retried."""
    if text is not None and not isinstance(text, str):
        raise InvalidInputError("Message text must be a string.")
    text = (text or "").strip()
    if not text:
        raise InvalidInputError("Message text is required.")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise InvalidInputError(f"Message must be at most {MAX_MESSAGE_LENGTH} characters.")

    conversation = await get_conversation(client, principal, conversation_id)
    if conversation.status == ConversationStatus.CLOSED:
        raise InvalidInputError("This conversation is closed. Reopen it to send messages.")

    now = to_store(utc_now())
    inserted = execute(
        client.table(MESSAGES_TABLE).insert({
            "id": generate_document_id(),
            "conversation_id": conversation_id,
            "sender_id": principal.uid,
            "text": text,
            "timestamp": now,
        }),
        "send message",
    )
    if not inserted:
        raise MalformedRecordError("Failed to send message: no data returned")
    message = to_message(inserted[0])

    updates: dict[str, Any] = {
        "last_message": {"text": text, "sender_id": principal.uid, "timestamp": now},
        "updated_at": now,
    }
    current = conversation.status or ConversationStatus.NEW
    if principal.uid != conversation.initiator_id and current == ConversationStatus.NEW:
        updates["status"] = ConversationStatus.RESPONDED.value
    execute(
        client.table(CONVERSATIONS_TABLE).update(updates).eq("id", conversation_id),
        "update conversation",
    )

    logger.info(
        "Message sent",
        conversation_id=conversation_id,
        sender=mask_user_id(principal.uid),
        status=updates.get("status", current.value),
        text=loggable_text(text)
    )
    return message


async def _set_status(client: Any, conversation_id: str, status: ConversationStatus) -> Conversation:
    rows = execute(
        client.table(CONVERSATIONS_TABLE).update({
            "status": status.value,
            "updated_at": to_store(utc_now()),
        }).eq("id", conversation_id),
        "update conversation status",
    )
    if not rows:
        raise NotFoundError(f"Conversation not found: {conversation_id}")
    logger.info("Conversation status changed", conversation_id=conversation_id, status=status.value)
    return to_conversation(rows[0])


async def close_conversation(client: Any, principal: Optional[Principal], conversation_id: str) -> Conversation:
    conversation = await get_conversation(client, principal, conversation_id)
    if conversation.status == ConversationStatus.CLOSED:
        return conversation
    return await _set_status(client, conversation_id, ConversationStatus.CLOSED)


async def reopen_conversation(client: Any, principal: Optional[Principal], conversation_id: str) -> Conversation:
    """Reopen to ``responded`` if the other side ever replied, else ``new``."""
    conversation = await get_conversation(client, principal, conversation_id)
    if conversation.status != ConversationStatus.CLOSED:
        return conversation
    replies = execute(
        client.table(MESSAGES_TABLE).select("id")
        .eq("conversation_id", conversation_id).neq("sender_id", conversation.initiator_id).limit(1),
        "check conversation replies",
    )
    status = ConversationStatus.RESPONDED if replies else ConversationStatus.NEW
    return await _set_status(client, conversation_id, status)


async def _fetch_messages(client: Any, conversation_id: str, after: Optional[Message] = None) -> list[Message]:
    query = client.table(MESSAGES_TABLE).select("*").eq("conversation_id", conversation_id)
    if after is not None:
        query = query.or_(start_after_clause(
            "timestamp", False, {"timestamp": to_store(after.timestamp), "id": after.id}
        ))
    rows = execute(query.order("timestamp").order("id"), "list messages")
    return [to_message(row) for row in rows]


async def list_messages(
    client: Any,
    principal: Optional[Principal],
    conversation_id: str,
    after: Optional[Message] = None,
) -> list[Message]:
    """Messages in ascending timestamp order, optionally only those after ``after``."""
    await get_conversation(client, principal, conversation_id)
    return await _fetch_messages(client, conversation_id, after)


class MessageSubscription:
    """Cancellable stream of a conversation's messages.

    Yields the existing messages first, then new ones as they are written.
    Iteration ends after :meth:`unsubscribe` (or ``aclose``)::

        async with subscribe_to_messages(client, principal, conversation_id) as messages:
            async for message in messages:
                ...
    """

    def __init__(
        self,
        client: Any,
        principal: Optional[Principal],
        conversation_id: str,
        poll_interval: Optional[float] = None,
    ):
        self.client = client
        self.principal = principal
        self.conversation_id = conversation_id
        self.poll_interval = (
            MarketplaceConfig.MESSAGE_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        )
        self._buffer: deque[Message] = deque()
        self._last_seen: Optional[Message] = None
        self._authorized = False
        self._closed = False
        self._wakeup = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "MessageSubscription":
        return self

    async def __anext__(self) -> Message:
        while True:
            if self._closed:
                raise StopAsyncIteration
            if self._buffer:
                return self._buffer.popleft()
            await self._poll()
            if self._buffer or self._closed:
                continue
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

    async def _poll(self) -> None:
        if not self._authorized:
            await get_conversation(self.client, self.principal, self.conversation_id)
            self._authorized = True
        messages = await _fetch_messages(self.client, self.conversation_id, self._last_seen)
        if messages:
            self._last_seen = messages[-1]
            self._buffer.extend(messages)

    def unsubscribe(self) -> None:
        if not self._closed:
            self._closed = True
            self._buffer.clear()
            self._wakeup.set()
            logger.debug("Message subscription closed", conversation_id=self.conversation_id)

    async def aclose(self) -> None:
        self.unsubscribe()

    async def __aenter__(self) -> "MessageSubscription":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.unsubscribe()
        return False


def subscribe_to_messages(
    client: Any,
    principal: Optional[Principal],
    conversation_id: str,
    poll_interval: Optional[float] = None,
) -> MessageSubscription:
    return MessageSubscription(client, principal, conversation_id, poll_interval)
