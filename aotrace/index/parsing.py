from __future__ import annotations
from datetime import datetime, timezone
from aotrace.model import (AoMessage, TokenTransferMessage, tags_to_dict,
                           TAG_FROM_PROCESS, TAG_TYPE, TAG_ACTION, TAG_SENDER, TAG_RECIPIENT, TAG_QUANTITY)

# Converts gateway edges ({cursor, node}) into model objects.

CREDIT_NOTICE = "Credit-Notice"
DEBIT_NOTICE = "Debit-Notice"

def _timestamp(seconds:int|float|None) -> datetime|None:
    if seconds is None:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)

def parse_ao_message(edge:dict) -> AoMessage:
    node = edge["node"]
    tags = tags_to_dict(node.get("tags") or [])
    owner = (node.get("owner") or {}).get("address") or ""
    block = node.get("block") or {}
    return AoMessage(
        id=node["id"],
        sender=tags.get(TAG_FROM_PROCESS) or owner,
        recipient=node.get("recipient") or "",
        type=tags.get(TAG_TYPE),
        tags=tags,
        block_height=block.get("height"),
        block_timestamp=_timestamp(block.get("timestamp")),
        ingested_at=_timestamp(node.get("ingested_at")),
        cursor=edge.get("cursor"),
    )

def _parse_quantity(value:str|None) -> int:
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        return int(float(value))

def parse_token_event(edge:dict) -> TokenTransferMessage:
    """A Credit-Notice credits the recipient; a Debit-Notice debits it (negative amount)."""
    message = parse_ao_message(edge)
    tags = message.tags
    action = tags.get(TAG_ACTION, "")
    quantity = _parse_quantity(tags.get(TAG_QUANTITY))
    if action == DEBIT_NOTICE:
        sender = message.recipient
        recipient = tags.get(TAG_RECIPIENT, "")
        amount = -quantity
    else:
        sender = tags.get(TAG_SENDER, "")
        recipient = message.recipient
        amount = quantity
    return TokenTransferMessage(
        id=message.id,
        action=action,
        sender=sender,
        recipient=recipient,
        token_id=message.sender,
        amount=amount,
        block_height=message.block_height,
        ingested_at=message.ingested_at,
        cursor=message.cursor,
    )
