from __future__ import annotations
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, TypeVar
from aotrace.model import MessageResult, Timeout, EndpointUnavailable, AllEndpointsFailed, MissingSigner
from .compute import ComputeTransport, HttpComputeTransport, MessageRequest, SpawnRequest
from .endpoints import EndpointConfig, PRIMARY_CONFIG, FALLBACK_CONFIG, REQUEST_TIMEOUT, ENABLE_FALLBACK
from .signer import Signer, SignerProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")
TransportFactory = Callable[[EndpointConfig], ComputeTransport]

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

class ResilientClient:
    """Compute client that tries the primary endpoint first and fails over once to the fallback.

    The primary attempt is raced against 'request_timeout'. An error or a missed deadline moves on
    to the fallback attempt, which runs without a deadline (only the transport's own timeouts apply).
    There is no retry loop beyond that single hop, so the worst case latency is the deadline
    plus one fallback call.

    Operations that need a signature take an explicit signer. Without one, the 'signer_provider'
    given at construction is asked for an environment signer, separately for each attempt.
    """
    primary:EndpointConfig
    fallback:EndpointConfig
    request_timeout:float
    enable_fallback:bool

    def __init__(
        self,
        primary:EndpointConfig = PRIMARY_CONFIG,
        fallback:EndpointConfig = FALLBACK_CONFIG,
        request_timeout:float = REQUEST_TIMEOUT,
        enable_fallback:bool = ENABLE_FALLBACK,
        signer_provider:SignerProvider|None = None,
        transport_factory:TransportFactory|None = None,
        ):
        if request_timeout <= 0:
            raise ValueError("request_timeout must be positive.")
        self.primary = primary
        self.fallback = fallback
        self.request_timeout = request_timeout
        self.enable_fallback = enable_fallback
        self._signer_provider = signer_provider
        if transport_factory is None:
            transport_factory = HttpComputeTransport
        self._primary_transport = transport_factory(primary)
        self._fallback_transport = transport_factory(fallback)

    def _require_signer(self, signer:Signer|None) -> Signer:
        if signer is not None:
            return signer
        if self._signer_provider is not None:
            signer = self._signer_provider()
            if signer is not None:
                return signer
        raise MissingSigner("No signer provided and no signer available from the environment.")

    async def _attempt_with_fallback(self, operation:str, fn:Callable[[ComputeTransport], Awaitable[T]]) -> T:
        primary = self._primary_transport.config

        async def primary_attempt() -> T:
            try:
                return await fn(self._primary_transport)
            except asyncio.TimeoutError as e:
                #raised by the transport itself, not the request deadline
                raise EndpointUnavailable(
                    f"{operation}: primary endpoint '{primary.name}' failed: transport timed out ({e!r})",
                    endpoint=primary.name) from e

        logger.info(f"[{_now()}] {operation}: trying primary endpoint '{primary.name}' ({primary.cu_url}, {primary.mode})")
        try:
            return await asyncio.wait_for(primary_attempt(), self.request_timeout)
        except EndpointUnavailable as e:
            primary_error = e
        except asyncio.TimeoutError as e:
            logger.warning(f"[{_now()}] {operation}: request to '{primary.name}' timed out after {self.request_timeout}s")
            primary_error = Timeout(
                f"{operation}: primary endpoint '{primary.name}' timed out after {self.request_timeout}s.",
                endpoint=primary.name,
                timeout_seconds=self.request_timeout)
            primary_error.__cause__ = e
        except MissingSigner as e:
            primary_error = e
        except Exception as e:
            primary_error = EndpointUnavailable(f"{operation}: primary endpoint '{primary.name}' failed: {e}", endpoint=primary.name)
            primary_error.__cause__ = e

        if not self.enable_fallback:
            logger.error(f"[{_now()}] {operation}: primary endpoint failed and fallback is disabled", exc_info=primary_error)
            raise primary_error

        fallback = self._fallback_transport.config
        logger.warning(f"[{_now()}] {operation}: primary endpoint failed, falling back to '{fallback.name}': {primary_error}")
        try:
            logger.info(f"[{_now()}] {operation}: trying fallback endpoint '{fallback.name}' ({fallback.cu_url}, {fallback.mode})")
            return await fn(self._fallback_transport)
        except Exception as e:
            logger.error(f"[{_now()}] {operation}: fallback endpoint '{fallback.name}' also failed", exc_info=e)
            raise AllEndpointsFailed(
                f"{operation}: all endpoints failed ('{primary.name}': {primary_error}; '{fallback.name}': {e})",
                primary_error=primary_error,
                fallback_error=e) from e

    async def send_message(self, request:MessageRequest, signer:Signer|None = None) -> str:
        async def op(transport:ComputeTransport) -> str:
            return await transport.message(request, self._require_signer(signer))
        return await self._attempt_with_fallback("send_message", op)

    async def dry_run(self, request:MessageRequest, signer:Signer|None = None) -> MessageResult:
        async def op(transport:ComputeTransport) -> MessageResult:
            return await transport.dry_run(request, self._require_signer(signer))
        return await self._attempt_with_fallback("dry_run", op)

    async def read_result(self, process:str, message:str) -> MessageResult:
        async def op(transport:ComputeTransport) -> MessageResult:
            return await transport.result(process, message)
        return await self._attempt_with_fallback("read_result", op)

    async def spawn(self, request:SpawnRequest, signer:Signer|None = None) -> str:
        async def op(transport:ComputeTransport) -> str:
            return await transport.spawn(request, self._require_signer(signer))
        return await self._attempt_with_fallback("spawn", op)

    async def monitor(self, process:str) -> Any:
        async def op(transport:ComputeTransport) -> Any:
            return await transport.monitor(process)
        return await self._attempt_with_fallback("monitor", op)

    async def unmonitor(self, process:str) -> Any:
        async def op(transport:ComputeTransport) -> Any:
            return await transport.unmonitor(process)
        return await self._attempt_with_fallback("unmonitor", op)
