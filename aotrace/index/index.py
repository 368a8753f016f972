from __future__ import annotations
from abc import ABC, abstractmethod
from async_lru import alru_cache
from aotrace.model import AoMessage, NotFound, TYPE_PROCESS, is_arweave_id

SearchResult = tuple[int | None, list[AoMessage]]
DEFAULT_PAGE_SIZE = 100

class MessageIndex(ABC):
    """Searchable store of all observed messages.

    Paginated searches return '(count, records)'. 'count' is only filled in when no cursor is
    given. Searches never raise: on transport or parse errors they log and return '(None, [])'.
    The by-id lookups are the exception, they raise, and fail fast on a malformed id."""

    def __init__(self):
        self._is_process_cache = alru_cache(maxsize=1000, ttl=60)(self._lookup_is_process)

    @abstractmethod
    async def get_message_by_id(self, id:str) -> AoMessage | None:
        pass

    @abstractmethod
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
        """Messages sent to 'recipient' whose reference tag carries one of 'msg_refs'.

        Searches the legacy 'Ref_' tag instead of 'Reference' if 'use_old_ref_symbol' is set."""
        pass

    @abstractmethod
    async def get_outgoing_messages(
        self,
        entity_id:str,
        is_process:bool = False,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        pass

    @abstractmethod
    async def get_incoming_messages(
        self,
        entity_id:str,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        pass

    @abstractmethod
    async def get_spawned_processes(
        self,
        entity_id:str,
        is_process:bool = False,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        pass

    @abstractmethod
    async def get_processes(
        self,
        module_id:str,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        pass

    @abstractmethod
    async def get_modules(
        self,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        pass

    async def require_message(self, id:str) -> AoMessage:
        message = await self.get_message_by_id(id)
        if message is None:
            raise NotFound(f"Message '{id}' was not found in the index.")
        return message

    async def _lookup_is_process(self, address:str) -> bool:
        if not is_arweave_id(address):
            return False
        message = await self.get_message_by_id(address)
        return message is not None and message.type == TYPE_PROCESS

    async def is_process(self, address:str) -> bool:
        """True if 'address' is the id of a spawned process (and not a wallet).

        Lookups are cached per index instance. Entries expire after a minute, since the index
        may not have ingested a freshly spawned process yet."""
        return await self._is_process_cache(address)
