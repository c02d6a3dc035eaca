"""Contact form and newsletter signups.

Confirmation emails are not sent here: a row is queued in ``email_queue``
for the mail worker.
"""

from typing import Any, Optional

from src.models.outreach import ContactSubmission, EmailTemplate, NewsletterSignup, SubscriptionStatus
from src.services.supabase_client import execute
from src.utils.errors import NotFoundError, SupabaseError
from src.utils.ids import generate_document_id
from src.utils.logging import get_structured_logger, loggable_text, mask_sensitive_data
from src.utils.timestamps import to_store, utc_now

logger = get_structured_logger(__name__)

CONTACT_MESSAGES_TABLE = "contact_messages"
NEWSLETTER_TABLE = "newsletter_subscribers"
EMAIL_QUEUE_TABLE = "email_queue"

SUBJECTS = {
    EmailTemplate.CONTACT_CONFIRMATION: "Thanks for contacting Ardhi",
    EmailTemplate.NEWSLETTER_CONFIRMATION: "Welcome to the Ardhi newsletter",
}


def queue_email(client: Any, to: str, template: EmailTemplate, payload: dict[str, Any]) -> str:
    email_id = generate_document_id()
    execute(
        client.table(EMAIL_QUEUE_TABLE).insert({
            "id": email_id,
            "to": to,
            "template": template.value,
            "subject": SUBJECTS[template],
            "payload": payload,
            "status": "queued",
            "created_at": to_store(utc_now()),
        }),
        "queue email",
    )
    logger.info("Email queued", email_id=email_id, template=template.value)
    return email_id


async def submit_contact_message(client: Any, submission: ContactSubmission) -> str:
    """Store the message and queue a confirmation to the sender; returns the message ID."""
    message_id = generate_document_id()
    execute(
        client.table(CONTACT_MESSAGES_TABLE).insert({
            "id": message_id,
            "name": submission.name,
            "email": submission.email,
            "message": submission.message,
            "status": "new",
            "created_at": to_store(utc_now()),
        }),
        "store contact message",
    )
    logger.info("Contact message received", message_id=message_id, message=loggable_text(submission.message))
    queue_email(
        client,
        submission.email,
        EmailTemplate.CONTACT_CONFIRMATION,
        {"name": submission.name, "message_id": message_id},
    )
    return message_id


def _find_subscriber(client: Any, email: str) -> Optional[dict[str, Any]]:
    rows = execute(
        client.table(NEWSLETTER_TABLE).select("*").eq("email", email).limit(1),
        "find newsletter subscriber",
    )
    return rows[0] if rows else None


async def subscribe_to_newsletter(client: Any, signup: NewsletterSignup) -> bool:
    """Subscribe an email; returns False when it is already active.

    A previously unsubscribed address is reactivated. A failure to queue the
    welcome email does not undo the subscription.
    """
    email = signup.email.lower()
    now = to_store(utc_now())
    existing = _find_subscriber(client, email)
    if existing and existing.get("status") == SubscriptionStatus.ACTIVE.value:
        return False

    if existing:
        execute(
            client.table(NEWSLETTER_TABLE).update({
                "status": SubscriptionStatus.ACTIVE.value,
                "subscribed_at": now,
                "unsubscribed_at": None,
            }).eq("id", existing["id"]),
            "reactivate newsletter subscriber",
        )
    else:
        execute(
            client.table(NEWSLETTER_TABLE).insert({
                "id": generate_document_id(),
                "email": email,
                "status": SubscriptionStatus.ACTIVE.value,
                "source": signup.source,
                "subscribed_at": now,
            }),
            "add newsletter subscriber",
        )
    logger.info("Newsletter subscription", email=mask_sensitive_data(email), source=signup.source)

    try:
        queue_email(client, email, EmailTemplate.NEWSLETTER_CONFIRMATION, {"email": email})
    except SupabaseError as e:
        logger.warning("Failed to queue newsletter confirmation", error=str(e))
    return True


async def unsubscribe_from_newsletter(client: Any, email: str) -> None:
    email = (email or "").strip().lower()
    existing = _find_subscriber(client, email) if email else None
    if existing is None:
        raise NotFoundError("Email not found in subscribers")
    execute(
        client.table(NEWSLETTER_TABLE).update({
            "status": SubscriptionStatus.UNSUBSCRIBED.value,
            "unsubscribed_at": to_store(utc_now()),
        }).eq("id", existing["id"]),
        "unsubscribe newsletter subscriber",
    )
    logger.info("Newsletter unsubscribe", email=mask_sensitive_data(email))
