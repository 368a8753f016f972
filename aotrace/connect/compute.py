from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
import httpx
from aotrace.model import Tag, MessageResult, TAG_DATA_PROTOCOL, TAG_TYPE, TAG_MODULE, TYPE_MESSAGE, TYPE_PROCESS
from .endpoints import EndpointConfig
from .signer import Signer

logger = logging.getLogger(__name__)

SDK_NAME = "aotrace"
VARIANT = "ao.TN.1"
DRY_RUN_ID = "1234"

@dataclass(frozen=True)
class MessageRequest:
    """A message (or dry run) addressed to a process. The AO protocol tags are added by the transport."""
    process:str
    tags:list[Tag] = field(default_factory=list)
    data:str|bytes|None = None
    anchor:str|None = None

@dataclass(frozen=True)
class SpawnRequest:
    module:str
    scheduler:str
    tags:list[Tag] = field(default_factory=list)
    data:str|bytes|None = None

class ComputeTransport(ABC):
    """Binds the compute operations to a single endpoint configuration."""
    config:EndpointConfig

    @abstractmethod
    async def dry_run(self, request:MessageRequest, signer:Signer) -> MessageResult:
        pass

    @abstractmethod
    async def message(self, request:MessageRequest, signer:Signer) -> str:
        pass

    @abstractmethod
    async def result(self, process:str, message:str) -> MessageResult:
        pass

    @abstractmethod
    async def spawn(self, request:SpawnRequest, signer:Signer) -> str:
        pass

    @abstractmethod
    async def monitor(self, process:str) -> Any:
        pass

    @abstractmethod
    async def unmonitor(self, process:str) -> Any:
        pass

def _message_tags(tags:list[Tag]) -> list[Tag]:
    return list(tags) + [
        Tag(TAG_DATA_PROTOCOL, "ao"),
        Tag("Variant", VARIANT),
        Tag(TAG_TYPE, TYPE_MESSAGE),
        Tag("SDK", SDK_NAME),
    ]

def _spawn_tags(request:SpawnRequest) -> list[Tag]:
    return list(request.tags) + [
        Tag(TAG_DATA_PROTOCOL, "ao"),
        Tag("Variant", VARIANT),
        Tag(TAG_TYPE, TYPE_PROCESS),
        Tag(TAG_MODULE, request.module),
        Tag("Scheduler", request.scheduler),
        Tag("SDK", SDK_NAME),
    ]

def _to_bytes(data:str|bytes|None) -> bytes:
    if data is None:
        return b"1984"
    if isinstance(data, str):
        return data.encode("utf-8")
    return data

class HttpComputeTransport(ComputeTransport):
    """Talks to a compute unit (CU) and messenger unit (MU) over HTTP.

    Non-2xx responses raise httpx.HTTPStatusError. If no client is passed in,
    a short-lived httpx.AsyncClient is opened per call."""

    def __init__(
        self,
        config:EndpointConfig,
        http_client:httpx.AsyncClient|None = None,
        timeout:httpx.Timeout|float = httpx.Timeout(30.0, connect=5.0),
        ):
        self.config = config
        self._http_client = http_client
        self._timeout = timeout

    async def _request(self, method:str, url:str, **kwargs) -> httpx.Response:
        if self._http_client is not None:
            response = await self._http_client.request(method, url, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    async def _post_data_item(self, data:bytes, tags:list[Tag], signer:Signer, target:str|None, anchor:str|None) -> str:
        signed = await signer.sign_data_item(data, tags, target=target, anchor=anchor)
        response = await self._request(
            "POST",
            f"{self.config.mu_url}/",
            content=signed.raw,
            headers={"Content-Type": "application/octet-stream", "Accept": "application/json"},
        )
        try:
            body = response.json()
        except ValueError:
            body = {}
        #the MU echoes the data item id, but the signed id is authoritative if it does not
        return body.get("id") or signed.id

    async def dry_run(self, request:MessageRequest, signer:Signer) -> MessageResult:
        data = request.data.decode("utf-8") if isinstance(request.data, bytes) else request.data
        body = {
            "Id": DRY_RUN_ID,
            "Target": request.process,
            "Owner": signer.address,
            "Anchor": request.anchor or "0",
            "Data": data if data is not None else DRY_RUN_ID,
            "Tags": [{"name": t.name, "value": t.value} for t in _message_tags(request.tags)],
        }
        response = await self._request(
            "POST",
            f"{self.config.cu_url}/dry-run",
            params={"process-id": request.process},
            json=body,
        )
        return MessageResult.model_validate(response.json())

    async def message(self, request:MessageRequest, signer:Signer) -> str:
        return await self._post_data_item(
            _to_bytes(request.data), _message_tags(request.tags), signer, request.process, request.anchor)

    async def result(self, process:str, message:str) -> MessageResult:
        response = await self._request(
            "GET",
            f"{self.config.cu_url}/result/{message}",
            params={"process-id": process},
        )
        return MessageResult.model_validate(response.json())

    async def spawn(self, request:SpawnRequest, signer:Signer) -> str:
        return await self._post_data_item(_to_bytes(request.data), _spawn_tags(request), signer, None, None)

    async def monitor(self, process:str) -> Any:
        response = await self._request("POST", f"{self.config.mu_url}/monitor/{process}")
        return _read_body(response)

    async def unmonitor(self, process:str) -> Any:
        response = await self._request("DELETE", f"{self.config.mu_url}/monitor/{process}")
        return _read_body(response)

def _read_body(response:httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
