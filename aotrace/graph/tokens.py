from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from async_lru import alru_cache
from aotrace.model import Tag, TAG_ACTION
from aotrace.connect import ClientRegistry, MessageRequest, Signer

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class TokenInfo:
    process_id:str
    name:str|None = None
    ticker:str|None = None
    denomination:int|None = None
    logo:str|None = None

    def to_dict(self) -> dict:
        return {
            "processId": self.process_id,
            "name": self.name,
            "ticker": self.ticker,
            "denomination": self.denomination,
            "logo": self.logo,
        }

NATIVE_TOKEN_INFO = TokenInfo(
    process_id="0syT13r0s0tgPmIed95bJnuSqaD29HQNN8D3ElLSrsc",
    name="AO",
    ticker="AO",
    denomination=12,
    logo="UkS-mdoiG8hcAClhKK8ch4ZhEzla0mCPDOix9hpdSFE",
)

class TokenInfoProvider(ABC):
    @abstractmethod
    async def get_token_info(self, process_id:str) -> TokenInfo | None:
        pass

class DryRunTokenInfoProvider(TokenInfoProvider):
    """Reads token metadata by dry-running 'Action=Info' against the token process.

    The token answers with a message whose tags carry 'Name', 'Ticker', 'Denomination' and 'Logo'.
    Answers are cached per provider; failures are not cached and yield None."""

    def __init__(self, clients:ClientRegistry, signer:Signer|None = None, known:list[TokenInfo]|None = None):
        self.clients = clients
        self.signer = signer
        self._known = {info.process_id: info for info in (known or [NATIVE_TOKEN_INFO])}
        self._cached_fetch = alru_cache(maxsize=256)(self._fetch)

    async def _fetch(self, process_id:str) -> TokenInfo:
        client = self.clients.get(process_id)
        result = await client.dry_run(
            MessageRequest(process=process_id, tags=[Tag(TAG_ACTION, "Info")]),
            self.signer)
        if not result.messages:
            raise ValueError(f"Token '{process_id}' did not answer the info request.")
        reply = result.messages[0]
        denomination = reply.tag("Denomination")
        return TokenInfo(
            process_id=process_id,
            name=reply.tag("Name"),
            ticker=reply.tag("Ticker"),
            denomination=int(denomination) if denomination is not None else None,
            logo=reply.tag("Logo"),
        )

    async def get_token_info(self, process_id:str) -> TokenInfo | None:
        if process_id in self._known:
            return self._known[process_id]
        try:
            return await self._cached_fetch(process_id)
        except Exception as e:
            logger.warning(f"Failed to read token info of '{process_id}': {e}")
            return None
