from __future__ import annotations
from typing import Any
from aotrace.model import MessageResult, get_arweave_id
from .compute import ComputeTransport, MessageRequest, SpawnRequest, _message_tags, _spawn_tags, _to_bytes
from .endpoints import EndpointConfig
from .signer import Signer

class MemoryComputeTransport(ComputeTransport):
    """Serves results from memory. Used in tests and to replay captured results offline."""
    #no locking needed here, because all the dict operations used here are atomic
    _results:dict[tuple[str, str], MessageResult]
    _dry_runs:dict[str, MessageResult]

    def __init__(self, config:EndpointConfig):
        self.config = config
        self._results = {}
        self._dry_runs = {}
        self.sent:list[tuple[str, MessageRequest | SpawnRequest]] = []
        self.monitored:set[str] = set()

    def set_result(self, process:str, message:str, result:MessageResult|dict) -> None:
        if isinstance(result, dict):
            result = MessageResult.model_validate(result)
        self._results[(process, message)] = result

    def set_dry_run(self, process:str, result:MessageResult|dict) -> None:
        if isinstance(result, dict):
            result = MessageResult.model_validate(result)
        self._dry_runs[process] = result

    async def dry_run(self, request:MessageRequest, signer:Signer) -> MessageResult:
        return self._dry_runs.get(request.process, MessageResult())

    async def message(self, request:MessageRequest, signer:Signer) -> str:
        signed = await signer.sign_data_item(
            _to_bytes(request.data), _message_tags(request.tags), target=request.process, anchor=request.anchor)
        self.sent.append((signed.id, request))
        return signed.id

    async def result(self, process:str, message:str) -> MessageResult:
        return self._results.get((process, message), MessageResult())

    async def spawn(self, request:SpawnRequest, signer:Signer) -> str:
        signed = await signer.sign_data_item(_to_bytes(request.data), _spawn_tags(request))
        self.sent.append((signed.id, request))
        return signed.id

    async def monitor(self, process:str) -> Any:
        self.monitored.add(process)
        return {"id": get_arweave_id(f"monitor:{process}".encode("utf-8"))}

    async def unmonitor(self, process:str) -> Any:
        self.monitored.discard(process)
        return {"id": get_arweave_id(f"unmonitor:{process}".encode("utf-8"))}
