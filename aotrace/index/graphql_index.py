from __future__ import annotations
import logging
from typing import Any, Callable
import httpx
from aotrace.model import (AoMessage, TokenTransferMessage, IndexQueryError, enforce_arweave_id,
                           REFERENCE_TAG, LEGACY_REFERENCE_TAG, TAG_ACTION, TAG_FROM_PROCESS, TAG_TYPE,
                           TAG_MODULE, TAG_PUSHED_FOR, TYPE_PROCESS, TYPE_MODULE)
from aotrace.connect.endpoints import DEFAULT_GRAPHQL_URL
from .index import MessageIndex, SearchResult, DEFAULT_PAGE_SIZE
from .parsing import parse_ao_message, parse_token_event, CREDIT_NOTICE, DEBIT_NOTICE
from .queries import AO_NETWORK_IDENTIFIER, build_transactions_query, sort_order, tag_filter

logger = logging.getLogger(__name__)

class GraphQLMessageIndex(MessageIndex):
    """Message index backed by an Arweave GraphQL gateway."""

    def __init__(
        self,
        url:str = DEFAULT_GRAPHQL_URL,
        http_client:httpx.AsyncClient|None = None,
        timeout:float = 30.0,
        ):
        super().__init__()
        self.url = url
        self._http_client = http_client
        self._timeout = timeout

    async def _post(self, payload:dict) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.url, json=payload)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(self.url, json=payload)

    async def query(self, query:str, variables:dict[str, Any]) -> dict:
        """Runs a GraphQL document and returns its 'data'. Raises IndexQueryError on any failure."""
        try:
            response = await self._post({"query": query, "variables": variables})
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise IndexQueryError(f"Index query to '{self.url}' failed: {e}") from e
        if body.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in body["errors"])
            raise IndexQueryError(f"Index query to '{self.url}' returned errors: {messages}")
        data = body.get("data")
        if data is None:
            raise IndexQueryError(f"Index query to '{self.url}' returned no data.")
        return data

    async def _search(
        self,
        name:str,
        variables:dict[str, Any],
        limit:int,
        cursor:str,
        ascending:bool,
        parse:Callable[[dict], Any] = parse_ao_message,
        **filters:bool,
        ) -> tuple[int | None, list]:
        include_count = not cursor
        query = build_transactions_query(include_count=include_count, **filters)
        variables = {
            **variables,
            "limit": limit,
            "sortOrder": sort_order(ascending),
            "cursor": cursor or None,
        }
        try:
            data = await self.query(query, variables)
            transactions = data["transactions"]
            records = [parse(edge) for edge in transactions["edges"]]
            count = transactions.get("count") if include_count else None
            return count, records
        except Exception as e:
            logger.warning(f"Index search '{name}' failed, returning no records: {e}")
            return None, []

    #===================================================================================================
    # Single records
    #===================================================================================================
    async def get_message_by_id(self, id:str) -> AoMessage | None:
        enforce_arweave_id(id)
        data = await self.query(
            build_transactions_query(ids=True, paginated=False),
            {"ids": [id], "tags": [AO_NETWORK_IDENTIFIER]})
        edges = data["transactions"]["edges"]
        if not edges:
            return None
        return parse_ao_message(edges[0])

    #===================================================================================================
    # Correlation
    #===================================================================================================
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
        tags = [tag_filter(symbol, *msg_refs)]
        if from_process:
            tags.append(tag_filter(TAG_FROM_PROCESS, from_process))
        if actions:
            tags.append(tag_filter(TAG_ACTION, *actions))
        query = build_transactions_query(recipients=True)
        variables = {
            "recipients": [recipient],
            "tags": tags,
            "limit": limit,
            "sortOrder": sort_order(ascending),
            "cursor": cursor or None,
        }
        try:
            data = await self.query(query, variables)
            return [parse_ao_message(edge) for edge in data["transactions"]["edges"]]
        except Exception as e:
            logger.warning(f"Correlation search for '{symbol}'={msg_refs} to '{recipient}' failed, returning no records: {e}")
            return []

    async def get_resulting_messages(
        self,
        from_process:str,
        msg_refs:list[str],
        use_old_ref_symbol:bool = False,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        """Messages a process sent in reply to the given reference values."""
        symbol = LEGACY_REFERENCE_TAG if use_old_ref_symbol else REFERENCE_TAG
        tags = [tag_filter(symbol, *msg_refs), tag_filter(TAG_FROM_PROCESS, from_process), AO_NETWORK_IDENTIFIER]
        return await self._search("resulting_messages", {"tags": tags}, limit, cursor, ascending)

    async def get_linked_messages(
        self,
        pushed_for:str,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        """Messages pushed on behalf of 'pushed_for'."""
        tags = [tag_filter(TAG_PUSHED_FOR, pushed_for), AO_NETWORK_IDENTIFIER]
        return await self._search("linked_messages", {"tags": tags}, limit, cursor, ascending)

    #===================================================================================================
    # Entities
    #===================================================================================================
    async def get_outgoing_messages(
        self,
        entity_id:str,
        is_process:bool = False,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        if is_process:
            variables = {"tags": [tag_filter(TAG_FROM_PROCESS, entity_id), AO_NETWORK_IDENTIFIER]}
            return await self._search("outgoing_messages", variables, limit, cursor, ascending)
        variables = {"tags": [AO_NETWORK_IDENTIFIER], "owners": [entity_id]}
        return await self._search("outgoing_messages", variables, limit, cursor, ascending, owners=True)

    async def get_incoming_messages(
        self,
        entity_id:str,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        variables = {"tags": [AO_NETWORK_IDENTIFIER], "recipients": [entity_id]}
        return await self._search("incoming_messages", variables, limit, cursor, ascending, recipients=True)

    async def get_token_transfers(
        self,
        entity_id:str,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> tuple[int | None, list[TokenTransferMessage]]:
        variables = {
            "tags": [tag_filter(TAG_ACTION, CREDIT_NOTICE, DEBIT_NOTICE), AO_NETWORK_IDENTIFIER],
            "recipients": [entity_id],
        }
        return await self._search(
            "token_transfers", variables, limit, cursor, ascending, parse=parse_token_event, recipients=True)

    async def get_spawned_processes(
        self,
        entity_id:str,
        is_process:bool = False,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        type_filter = tag_filter(TAG_TYPE, TYPE_PROCESS)
        if is_process:
            variables = {"tags": [tag_filter(TAG_FROM_PROCESS, entity_id), type_filter, AO_NETWORK_IDENTIFIER]}
            return await self._search("spawned_processes", variables, limit, cursor, ascending)
        variables = {"tags": [AO_NETWORK_IDENTIFIER, type_filter], "owners": [entity_id]}
        return await self._search("spawned_processes", variables, limit, cursor, ascending, owners=True)

    async def get_eval_messages(
        self,
        entity_id:str,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        variables = {"tags": [tag_filter(TAG_ACTION, "Eval"), AO_NETWORK_IDENTIFIER], "recipients": [entity_id]}
        return await self._search("eval_messages", variables, limit, cursor, ascending, recipients=True)

    #===================================================================================================
    # Modules, processes, blocks
    #===================================================================================================
    async def get_processes(
        self,
        module_id:str,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        tags = [tag_filter(TAG_MODULE, module_id), tag_filter(TAG_TYPE, TYPE_PROCESS), AO_NETWORK_IDENTIFIER]
        return await self._search("processes", {"tags": tags}, limit, cursor, ascending)

    async def get_modules(
        self,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        tags = [tag_filter(TAG_TYPE, TYPE_MODULE), AO_NETWORK_IDENTIFIER]
        return await self._search("modules", {"tags": tags}, limit, cursor, ascending)

    async def get_messages_for_block(
        self,
        block_height:int,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        variables = {"tags": [AO_NETWORK_IDENTIFIER], "blockHeight": block_height}
        return await self._search("messages_for_block", variables, limit, cursor, ascending, block=True)

    async def get_all_messages(
        self,
        extra_filters:dict[str, str] | None = None,
        limit:int = DEFAULT_PAGE_SIZE,
        cursor:str = "",
        ascending:bool = False,
        ) -> SearchResult:
        tags = [AO_NETWORK_IDENTIFIER]
        for name, value in (extra_filters or {}).items():
            tags.append(tag_filter(name, value))
        return await self._search("all_messages", {"tags": tags}, limit, cursor, ascending)
