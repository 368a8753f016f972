from __future__ import annotations
import json
import logging
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from .object_model import Tag, REFERENCE_TAG, LEGACY_REFERENCE_TAG

logger = logging.getLogger(__name__)

# Typed views over the loosely shaped JSON returned by compute units.
# Lists are always present (possibly empty), so callers never branch on missing keys.

def _to_tag(tag:Any) -> Tag:
    if isinstance(tag, dict):
        return Tag(str(tag["name"]), str(tag["value"]))
    if isinstance(tag, (tuple, list)) and len(tag) == 2:
        return Tag(str(tag[0]), str(tag[1]))
    raise ValueError(f"Cannot read tag from '{tag}'.")

class OutputMessage(BaseModel):
    """A message emitted by a process while evaluating another message."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    target:str|None = Field(default=None, alias="Target")
    tags:list[Tag] = Field(default_factory=list, alias="Tags")
    data:Any = Field(default=None, alias="Data")
    anchor:str|None = Field(default=None, alias="Anchor")

    @field_validator("tags", mode="before")
    @classmethod
    def _read_tags(cls, value:Any) -> list[Tag]:
        if value is None:
            return []
        return [_to_tag(t) for t in value]

    @field_serializer("tags")
    def _write_tags(self, tags:list[Tag]) -> list[dict]:
        return [{"name": t.name, "value": t.value} for t in tags]

    def tag(self, name:str) -> str|None:
        value = None
        for t in self.tags:
            if t.name == name:
                value = t.value
        return value

    def reference_tag(self) -> Tag|None:
        """The correlation tag of this output. The current symbol wins over the legacy one."""
        for symbol in (REFERENCE_TAG, LEGACY_REFERENCE_TAG):
            value = self.tag(symbol)
            if value is not None:
                return Tag(symbol, value)
        return None

class MessageResult(BaseModel):
    """Outcome of evaluating one message against a process (also the shape of a dry run)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    output:Any = Field(default=None, alias="Output")
    messages:list[OutputMessage] = Field(default_factory=list, alias="Messages")
    spawns:list[dict] = Field(default_factory=list, alias="Spawns")
    errors:list[str] = Field(default_factory=list, alias="Errors")
    gas_used:int|None = Field(default=None, alias="GasUsed")

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data:Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("Messages", "Spawns", "Errors"):
            if key in data and data[key] is None:
                data[key] = []
        #compute units report a single 'Error' (string or object) instead of a list
        error = data.pop("Error", None)
        if error:
            errors = list(data.get("Errors") or [])
            errors.append(error if isinstance(error, str) else json.dumps(error))
            data["Errors"] = errors
        if "Errors" in data:
            data["Errors"] = [e if isinstance(e, str) else json.dumps(e) for e in data["Errors"]]
        return data

    @classmethod
    def empty(cls) -> MessageResult:
        return cls(Output="No result")

    def prettified(self) -> MessageResult:
        """Returns a copy where JSON strings in 'output.data' and 'messages[].data' are parsed."""
        output = self.output
        if isinstance(output, dict) and isinstance(output.get("data"), str):
            try:
                output = {**output, "data": json.loads(output["data"])}
            except ValueError:
                logger.debug("Failed to parse Output.data")
        messages = []
        for message in self.messages:
            if isinstance(message.data, str):
                try:
                    message = message.model_copy(update={"data": json.loads(message.data)})
                except ValueError:
                    logger.debug("Failed to parse message.Data")
            messages.append(message)
        return self.model_copy(update={"output": output, "messages": messages})
