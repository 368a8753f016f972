from abc import ABC, abstractmethod
from typing import Callable, NamedTuple
from aotrace.model import Tag

SignedDataItem = NamedTuple("SignedDataItem",
    [('id', str),
     ('raw', bytes)])

class Signer(ABC):
    """Creates signed ANS-104 data items on behalf of a wallet.

    Producing the signature (wallet extension, key file, remote signer) is up to the implementation."""

    @property
    @abstractmethod
    def address(self) -> str:
        pass

    @abstractmethod
    async def sign_data_item(
        self,
        data:bytes,
        tags:list[Tag],
        target:str|None = None,
        anchor:str|None = None,
        ) -> SignedDataItem:
        pass

# Supplies a signer from the hosting environment (e.g. a connected wallet), or None if there is none.
SignerProvider = Callable[[], Signer | None]
