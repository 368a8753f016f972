from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, NamedTuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .results import MessageResult

# Type aliases and structures that describe what the index and the compute units hand back.

MessageId = str   # 43 char base64url Arweave id
ProcessId = str
Address = str     # wallet or process id

Tag = NamedTuple("Tag",
    [('name', str),
     ('value', str)])
Tags = dict[str, str] # name -> last value

# Well-known tag names
TAG_ACTION = "Action"
TAG_PUSHED_FOR = "Pushed-For"
TAG_RECIPIENT = "Recipient"
TAG_QUANTITY = "Quantity"
TAG_FROM_PROCESS = "From-Process"
TAG_TRANSFER = "Transfer"
TAG_SENDER = "Sender"
TAG_TYPE = "Type"
TAG_MODULE = "Module"
TAG_DATA_PROTOCOL = "Data-Protocol"

# Correlation tag symbols. The legacy symbol is still found on older messages.
REFERENCE_TAG = "Reference"
LEGACY_REFERENCE_TAG = "Ref_"

TYPE_MESSAGE = "Message"
TYPE_PROCESS = "Process"
TYPE_MODULE = "Module"

def tags_to_dict(tags:list[Tag]|list[dict]) -> Tags:
    """Collapses an ordered tag list into a mapping. Repeated names keep the last value."""
    result:Tags = {}
    for tag in tags:
        if isinstance(tag, dict):
            result[tag["name"]] = tag["value"]
        else:
            result[tag.name] = tag.value
    return result

@dataclass(frozen=True)
class AoMessage:
    """A message (or process/module spawn) as recorded by the index."""
    id:MessageId
    sender:Address
    recipient:Address
    type:str|None
    tags:Tags = field(default_factory=dict)
    block_height:int|None = None
    block_timestamp:datetime|None = None
    ingested_at:datetime|None = None
    cursor:str|None = None

    @property
    def action(self) -> str|None:
        return self.tags.get(TAG_ACTION)

    @property
    def pushed_for(self) -> MessageId|None:
        return self.tags.get(TAG_PUSHED_FOR)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from": self.sender,
            "to": self.recipient,
            "type": self.type,
            "tags": dict(self.tags),
            "blockHeight": self.block_height,
            "blockTimestamp": self.block_timestamp.isoformat() if self.block_timestamp else None,
            "ingestedAt": self.ingested_at.isoformat() if self.ingested_at else None,
        }

@dataclass(frozen=True)
class TokenTransferMessage:
    """A Credit-Notice or Debit-Notice addressed to an entity. Debits carry a negative amount."""
    id:MessageId
    action:str
    sender:Address
    recipient:Address
    token_id:ProcessId
    amount:int
    block_height:int|None = None
    ingested_at:datetime|None = None
    cursor:str|None = None

@dataclass(frozen=True)
class MessageTree:
    """A resolved message, the result of evaluating it, and the messages it caused."""
    message:AoMessage
    result:MessageResult|None = None
    children:tuple[MessageTree, ...] = ()

    @property
    def id(self) -> MessageId:
        return self.message.id

    def walk(self) -> Iterator[MessageTree]:
        """Depth-first, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def size(self) -> int:
        return sum(1 for _ in self.walk())

    def to_dict(self) -> dict:
        d = self.message.to_dict()
        d["result"] = self.result.model_dump(by_alias=True) if self.result is not None else None
        d["children"] = [child.to_dict() for child in self.children]
        return d
