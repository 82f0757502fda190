# ==============================================================================
# Idempotent Row Keys
# ==============================================================================
"""
Deterministic primary keys for warehouse-derived rows.

Re-running the same day's warehouse sync must re-affirm existing durable rows
rather than insert duplicates, so every derived row carries a key computed
purely from its natural-key fields.

Key algorithm (must stay stable, rows already in the durable store use it):

    sha1("|".join(parts)) read as a big-endian unsigned integer,
    rendered in base 10.

Field tuples per view:

    ======================  ==================================================
    view                    parts
    ======================  ==================================================
    sessions                ``session_id = "{user_pseudo_id}_{ga_session_id}"``
    pageviews               (user_pseudo_id, event_timestamp, "page_view")
    video events            (user_pseudo_id, event_timestamp, event_name,
                             video_id or "")
    CTA clicks              (user_pseudo_id, event_timestamp, cta_id or "")
    ======================  ==================================================

``event_timestamp`` is the raw microsecond integer from the export, as text.
"""

import hashlib


def hash_id(*parts: object) -> str:
    """
    Hash an ordered tuple of fields into a decimal key.

    ``None`` parts are hashed as the empty string.

    Args:
        *parts: Natural-key fields in their fixed order

    Returns:
        Decimal string of the 160-bit SHA-1 digest
    """
    joined = "|".join("" if part is None else str(part) for part in parts)
    digest = hashlib.sha1(joined.encode("utf-8")).hexdigest()
    return str(int(digest, 16))


def session_key(user_pseudo_id: str, ga_session_id: object) -> str:
    """Composite session identifier shared by local and warehouse paths."""
    return f"{user_pseudo_id}_{ga_session_id}"


def pageview_key(user_pseudo_id: str, event_timestamp: object) -> str:
    return hash_id(user_pseudo_id, event_timestamp, "page_view")


def video_event_key(
    user_pseudo_id: str, event_timestamp: object, event_name: str, video_id: str | None
) -> str:
    return hash_id(user_pseudo_id, event_timestamp, event_name, video_id or "")


def cta_click_key(user_pseudo_id: str, event_timestamp: object, cta_id: str | None) -> str:
    return hash_id(user_pseudo_id, event_timestamp, cta_id or "")
