import asyncio
from typing import Any
from aotrace.model import *
from aotrace.connect import *

PROCESS_ID = "p" * 43
MESSAGE_ID = "m" * 43

class FakeSigner(Signer):
    def __init__(self, address:str = "w" * 43):
        self._address = address
        self.signed:list[tuple[bytes, list[Tag], str|None]] = []

    @property
    def address(self) -> str:
        return self._address

    async def sign_data_item(self, data:bytes, tags:list[Tag], target:str|None = None, anchor:str|None = None) -> SignedDataItem:
        self.signed.append((data, tags, target))
        raw = data + b"|" + "|".join(f"{t.name}={t.value}" for t in tags).encode("utf-8")
        return SignedDataItem(get_arweave_id(raw), raw)

class ScriptedTransport(ComputeTransport):
    """Answers every operation with the scripted behavior: an optional delay, then an error or the scripted answer."""

    def __init__(self, config:EndpointConfig, delay:float = 0.0, error:Exception|None = None, answer:Any = None):
        self.config = config
        self.delay = delay
        self.error = error
        self.answer = answer
        self.calls:list[str] = []

    async def _answer(self, operation:str, default:Any) -> Any:
        self.calls.append(operation)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer if self.answer is not None else default

    async def dry_run(self, request:MessageRequest, signer:Signer) -> MessageResult:
        return await self._answer("dry_run", MessageResult(Output=self.config.name))

    async def message(self, request:MessageRequest, signer:Signer) -> str:
        signed = await signer.sign_data_item(b"", request.tags, target=request.process)
        return await self._answer("message", signed.id)

    async def result(self, process:str, message:str) -> MessageResult:
        return await self._answer("result", MessageResult(Output=self.config.name))

    async def spawn(self, request:SpawnRequest, signer:Signer) -> str:
        return await self._answer("spawn", self.config.name)

    async def monitor(self, process:str) -> Any:
        return await self._answer("monitor", {"endpoint": self.config.name})

    async def unmonitor(self, process:str) -> Any:
        return await self._answer("unmonitor", {"endpoint": self.config.name})

def setup_client(
    primary:dict|None = None,
    fallback:dict|None = None,
    request_timeout:float = 0.2,
    enable_fallback:bool = True,
    signer_provider:SignerProvider|None = None,
    ) -> tuple[ResilientClient, dict[str, ScriptedTransport]]:
    '''Creates a client whose transports follow the given scripts (kwargs of ScriptedTransport), keyed by endpoint name.'''
    scripts = {PRIMARY_CONFIG.name: primary or {}, FALLBACK_CONFIG.name: fallback or {}}
    transports:dict[str, ScriptedTransport] = {}
    def factory(config:EndpointConfig) -> ComputeTransport:
        transport = ScriptedTransport(config, **scripts[config.name])
        transports[config.name] = transport
        return transport
    client = ResilientClient(
        request_timeout=request_timeout,
        enable_fallback=enable_fallback,
        signer_provider=signer_provider,
        transport_factory=factory)
    return client, transports
