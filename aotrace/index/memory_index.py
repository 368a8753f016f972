from __future__ import annotations
from datetime import datetime, timezone
from typing import Callable
from aotrace.model import (AoMessage, enforce_arweave_id, REFERENCE_TAG, LEGACY_REFERENCE_TAG,
                           TAG_ACTION, TAG_FROM_PROCESS, TAG_MODULE, TYPE_PROCESS, TYPE_MODULE)
from .index import MessageIndex, SearchResult, DEFAULT_PAGE_SIZE

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)

class MemoryMessageIndex(MessageIndex):
    """An index held in memory, with the same filter and pagination semantics as the gateway.

    Descending order is by ingestion time, most recent first (ties: most recently added first).
    Ascending order is by block height (ties: in the order added). Cursors are message ids."""
    #no locking needed here, because all the dict operations used here are atomic
    _messages:dict[str, AoMessage]
    _sequence:dict[str, int]

    def __init__(self, messages:list[AoMessage]|None = None):
        super().__init__()
        self._messages = {}
        self._sequence = {}
        for message in messages or []:
            self.add(message)

    def add(self, message:AoMessage) -> None:
        self._messages[message.id] = message
        self._sequence.setdefault(message.id, len(self._sequence))

    def __len__(self) -> int:
        return len(self._messages)

    def _sorted(self, ascending:bool) -> list[AoMessage]:
        messages = list(self._messages.values())
        if ascending:
            return sorted(messages, key=lambda m: (m.block_height or 0, self._sequence[m.id]))
        return sorted(messages, key=lambda m: (m.ingested_at or _EPOCH, self._sequence[m.id]), reverse=True)

    def _page(self, predicate:Callable[[AoMessage], bool], limit:int, cursor:str, ascending:bool) -> SearchResult:
        matches = [m for m in self._sorted(ascending) if predicate(m)]
        start = 0
        if cursor:
            ids = [m.id for m in matches]
            start = ids.index(cursor) + 1 if cursor in ids else len(ids)
        count = len(matches) if not cursor else None
        return count, matches[start:start + limit]

    async def get_message_by_id(self, id:str) -> AoMessage | None:
        enforce_arweave_id(id)
        return self._messages.get(id)

    async def get_correlated_messages(
        self,
        recipient:str,
        msg_refs:list[str],
        actions:list[str] | None = None,
        from_process:str | None = None,
        use_old_ref_symbol:bool = False,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> list[AoMessage]:
        symbol = LEGACY_REFERENCE_TAG if use_old_ref_symbol else REFERENCE_TAG
        def predicate(m:AoMessage) -> bool:
            return (m.recipient == recipient
                and m.tags.get(symbol) in msg_refs
                and (not from_process or m.tags.get(TAG_FROM_PROCESS) == from_process)
                and (not actions or m.tags.get(TAG_ACTION) in actions))
        _, records = self._page(predicate, limit, cursor, ascending)
        return records

    async def get_outgoing_messages(
        self,
        entity_id:str,
        is_process:bool = False,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        if is_process:
            return self._page(lambda m: m.tags.get(TAG_FROM_PROCESS) == entity_id, limit, cursor, ascending)
        return self._page(lambda m: m.sender == entity_id and TAG_FROM_PROCESS not in m.tags, limit, cursor, ascending)

    async def get_incoming_messages(
        self,
        entity_id:str,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        return self._page(lambda m: m.recipient == entity_id, limit, cursor, ascending)

    async def get_spawned_processes(
        self,
        entity_id:str,
        is_process:bool = False,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        if is_process:
            predicate = lambda m: m.type == TYPE_PROCESS and m.tags.get(TAG_FROM_PROCESS) == entity_id
        else:
            predicate = lambda m: m.type == TYPE_PROCESS and m.sender == entity_id
        return self._page(predicate, limit, cursor, ascending)

    async def get_processes(
        self,
        module_id:str,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        return self._page(lambda m: m.type == TYPE_PROCESS and m.tags.get(TAG_MODULE) == module_id, limit, cursor, ascending)

    async def get_modules(
        self,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        return self._page(lambda m: m.type == TYPE_MODULE, limit, cursor, ascending)
