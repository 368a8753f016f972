from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from aotrace.model import MessageTree, AoTraceError, TAG_ACTION, TAG_RECIPIENT, TAG_QUANTITY
from .resolver import GraphResolver
from .tokens import TokenInfoProvider

logger = logging.getLogger(__name__)

SWAP_ACTIONS = ["Transfer", "Credit-Notice", "Debit-Notice"]

@dataclass(frozen=True)
class TokenTransfer:
    """A 'Transfer' message found in a message tree. 'process' is the token that moved."""
    sender:str
    recipient:str
    process:str
    amount:int
    node:str
    ticker:str|None = None
    denomination:int|None = None

    def to_dict(self) -> dict:
        return {
            "from": self.sender,
            "to": self.recipient,
            "process": self.process,
            "amount": str(self.amount),
            "message": self.node,
            "ticker": self.ticker,
            "denomination": self.denomination,
        }

@dataclass(frozen=True)
class Swap:
    tree:MessageTree
    transfers:list[TokenTransfer] = field(default_factory=list)
    created_at:datetime|None = None
    created_at_block:int|None = None

    def to_dict(self) -> dict:
        return {
            "transfers": [t.to_dict() for t in self.transfers],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "createdAtBlock": self.created_at_block,
            "tree": self.tree.to_dict(),
        }

def _parse_amount(value:str|None) -> int:
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        logger.debug(f"Unreadable transfer quantity '{value}'")
        return 0

def get_all_transfers(tree:MessageTree, action:str = "Transfer") -> list[TokenTransfer]:
    """All transfers in the tree, depth-first in pre-order."""
    transfers = []
    for node in tree.walk():
        message = node.message
        if message.tags.get(TAG_ACTION) != action:
            continue
        transfers.append(TokenTransfer(
            sender=message.sender,
            recipient=message.tags.get(TAG_RECIPIENT) or message.recipient,
            process=message.recipient,
            amount=_parse_amount(message.tags.get(TAG_QUANTITY)),
            node=message.id,
        ))
    return transfers

async def enrich_transfers(transfers:list[TokenTransfer], provider:TokenInfoProvider) -> list[TokenTransfer]:
    """Fills in ticker and denomination. Transfers of unknown tokens are returned unchanged."""
    processes = list(dict.fromkeys(t.process for t in transfers))
    infos = await asyncio.gather(*[provider.get_token_info(p) for p in processes])
    by_process = {p: info for p, info in zip(processes, infos) if info is not None}
    enriched = []
    for transfer in transfers:
        info = by_process.get(transfer.process)
        if info is not None:
            transfer = replace(transfer, ticker=info.ticker, denomination=info.denomination)
        enriched.append(transfer)
    return enriched

async def get_swap(
    resolver:GraphResolver,
    msg_id:str,
    token_info:TokenInfoProvider|None = None,
    cancel_event:asyncio.Event|None = None,
    ) -> Swap | None:
    """Resolves the transfers caused by a swap message, starting from the message it was pushed for."""
    try:
        tree = await resolver.resolve(
            msg_id,
            actions=SWAP_ACTIONS,
            follow_pushed_for=True,
            cancel_event=cancel_event)
    except AoTraceError as e:
        logger.error(f"Failed to resolve swap '{msg_id}': {e}", exc_info=e)
        return None
    if tree is None:
        return None

    transfers = get_all_transfers(tree)
    if token_info is not None:
        transfers = await enrich_transfers(transfers, token_info)
    return Swap(
        tree=tree,
        transfers=transfers,
        created_at=tree.message.block_timestamp,
        created_at_block=tree.message.block_height,
    )
