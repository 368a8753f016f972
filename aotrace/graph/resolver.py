from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar
from aotrace.model import AoMessage, MessageTree, MessageResult, OutputMessage, TraversalLimitExceeded, LEGACY_REFERENCE_TAG
from aotrace.connect import ClientRegistry, ResilientClient
from aotrace.index import MessageIndex, DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)

T = TypeVar("T")

@dataclass(frozen=True)
class TraversalLimits:
    """Bounds for one resolution. 'None' disables a bound.

    'max_concurrency' caps the index and compute calls in flight at once, across the whole tree."""
    max_depth:int|None = 32
    max_nodes:int|None = 2000
    max_concurrency:int = 1

    def __post_init__(self):
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1.")

class _Traversal:
    """State of a single 'resolve' call. Never shared between calls."""

    def __init__(self, limits:TraversalLimits, cancel_event:asyncio.Event|None):
        self.limits = limits
        self.cancel_event = cancel_event
        self.semaphore = asyncio.Semaphore(limits.max_concurrency)
        self.node_count = 0

    def check_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise asyncio.CancelledError("Message graph resolution was cancelled.")

    def check_depth(self, depth:int):
        if self.limits.max_depth is not None and depth > self.limits.max_depth:
            raise TraversalLimitExceeded(
                f"Message graph is deeper than {self.limits.max_depth} levels.", "max_depth", depth)

    def add_node(self):
        self.node_count += 1
        if self.limits.max_nodes is not None and self.node_count > self.limits.max_nodes:
            raise TraversalLimitExceeded(
                f"Message graph has more than {self.limits.max_nodes} messages.", "max_nodes", self.node_count)

    async def call(self, fn:Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        self.check_cancelled()
        async with self.semaphore:
            result = await fn(*args, **kwargs)
        self.check_cancelled()
        return result

class GraphResolver:
    """Rebuilds the tree of messages that a root message caused.

    For every node the resolver reads the result of the message from the compute unit (only if
    its recipient is a process), then asks the index for the replies correlated to each output
    message through its reference tag, and recurses into them.

    Missing messages are normal (indexer lag), they are left out. Any other failure while resolving
    a node drops that whole node: there are no partial subtrees. Exceeding the traversal limits and
    cancellation propagate to the caller.

    'scope_sender' additionally filters replies by 'From-Process'. It is off by default because some
    gateways drop valid messages under that filter; enable it only for an index known to handle it.
    """
    index:MessageIndex
    clients:ClientRegistry
    limits:TraversalLimits

    def __init__(
        self,
        index:MessageIndex,
        clients:ClientRegistry|ResilientClient,
        limits:TraversalLimits|None = None,
        scope_sender:bool = False,
        page_size:int = DEFAULT_PAGE_SIZE,
        ):
        if isinstance(clients, ResilientClient):
            clients = ClientRegistry(default=clients)
        self.index = index
        self.clients = clients
        self.limits = limits or TraversalLimits()
        self.scope_sender = scope_sender
        self.page_size = page_size

    async def resolve(
        self,
        msg_id:str,
        actions:list[str]|None = None,
        follow_pushed_for:bool = False,
        dedupe:bool = False,
        depth:int = 0,
        cancel_event:asyncio.Event|None = None,
        ) -> MessageTree | None:
        """Returns the tree rooted at 'msg_id', or None if it could not be reconstructed.

        A root that caused nothing is returned as a node without children, not as None.
        'actions' limits the replies to those with one of the given 'Action' tags. 'follow_pushed_for'
        starts from the message named by the root's 'Pushed-For' tag (top level only). 'dedupe'
        drops repeated ids within each correlation search."""
        traversal = _Traversal(self.limits, cancel_event)
        return await self._resolve(traversal, msg_id, actions, follow_pushed_for, dedupe, depth)

    async def _resolve(
        self,
        traversal:_Traversal,
        msg_id:str,
        actions:list[str]|None,
        follow_pushed_for:bool,
        dedupe:bool,
        depth:int,
        ) -> MessageTree | None:
        try:
            return await self._resolve_node(traversal, msg_id, actions, follow_pushed_for, dedupe, depth)
        except TraversalLimitExceeded:
            raise
        except Exception as e:
            logger.error(f"Failed to fetch message graph for '{msg_id}' at depth {depth}: {e}", exc_info=e)
            return None

    async def _resolve_node(
        self,
        traversal:_Traversal,
        msg_id:str,
        actions:list[str]|None,
        follow_pushed_for:bool,
        dedupe:bool,
        depth:int,
        ) -> MessageTree | None:
        traversal.check_depth(depth)
        message = await traversal.call(self.index.get_message_by_id, msg_id)
        if message is None:
            logger.debug(f"Message '{msg_id}' is not (yet) in the index.")
            return None

        if follow_pushed_for and message.pushed_for:
            pushed_for = message.pushed_for
            message = await traversal.call(self.index.get_message_by_id, pushed_for)
            if message is None:
                logger.debug(f"Pushed-For message '{pushed_for}' of '{msg_id}' is not (yet) in the index.")
                return None

        traversal.add_node()

        result:MessageResult|None = None
        if await traversal.call(self.index.is_process, message.recipient):
            client = self.clients.get(message.recipient)
            result = await traversal.call(client.read_result, message.recipient, message.id)

        children:list[MessageTree] = []
        outputs = result.messages if result is not None else []
        for output in outputs:
            children.extend(await self._resolve_replies(traversal, message, output, actions, dedupe, depth))

        return MessageTree(message=message, result=result, children=tuple(children))

    async def _resolve_replies(
        self,
        traversal:_Traversal,
        message:AoMessage,
        output:OutputMessage,
        actions:list[str]|None,
        dedupe:bool,
        depth:int,
        ) -> list[MessageTree]:
        ref_tag = output.reference_tag()
        if ref_tag is None or not output.target:
            logger.debug(f"Output of '{message.id}' to '{output.target}' has no reference tag, it has no replies to follow.")
            return []

        nodes = await traversal.call(
            self.index.get_correlated_messages,
            recipient=output.target,
            msg_refs=[ref_tag.value],
            actions=actions,
            from_process=message.recipient if self.scope_sender else None,
            use_old_ref_symbol=ref_tag.name == LEGACY_REFERENCE_TAG,
            limit=self.page_size,
            cursor="",
            ascending=False,
        )
        node_ids = [node.id for node in nodes]
        if dedupe:
            node_ids = list(dict.fromkeys(node_ids))

        tasks = [
            asyncio.ensure_future(self._resolve(traversal, node_id, actions, False, dedupe, depth + 1))
            for node_id in node_ids]
        try:
            subtrees = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            #wait for the cancelled siblings to unwind
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return [tree for tree in subtrees if tree is not None]
