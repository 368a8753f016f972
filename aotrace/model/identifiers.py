import base64
import hashlib
import os
import re
from .errors import MalformedIdentifier

# Arweave transaction and wallet ids: 32 bytes, base64url without padding.
_ID_STR_LEN = 43
_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{43}$")

def is_arweave_id(value:str) -> bool:
    return isinstance(value, str) and len(value) == _ID_STR_LEN and _ID_PATTERN.match(value) is not None

def enforce_arweave_id(value:str, what:str="id") -> str:
    if not is_arweave_id(value):
        raise MalformedIdentifier(f"Invalid Arweave {what}: '{value}'.")
    return value

def get_arweave_id(data:bytes) -> str:
    """A deterministic id for arbitrary bytes (sha256, base64url, no padding)."""
    return base64.urlsafe_b64encode(hashlib.sha256(data).digest()).rstrip(b"=").decode("ascii")

def get_random_arweave_id() -> str:
    return get_arweave_id(os.urandom(32))
