from __future__ import annotations
import logging
from .resilient_client import ResilientClient

logger = logging.getLogger(__name__)

class ClientRegistry:
    """Maps process ids to the client that serves them, with a default for everything else.

    Some processes (e.g. tokens) are only evaluated by specific compute units. The registry is
    owned by the caller and passed in explicitly; there is no module level default client."""
    default:ResilientClient
    _clients:dict[str, ResilientClient]

    def __init__(self, default:ResilientClient, clients:dict[str, ResilientClient]|None = None):
        self.default = default
        self._clients = dict(clients) if clients else {}

    def register(self, process_id:str, client:ResilientClient) -> None:
        if not process_id:
            raise ValueError("process_id must be a non-empty string.")
        if process_id in self._clients:
            logger.info(f"Replacing client for process '{process_id}'.")
        self._clients[process_id] = client

    def get(self, process_id:str) -> ResilientClient:
        return self._clients.get(process_id, self.default)

    def __contains__(self, process_id:str) -> bool:
        return process_id in self._clients

    def __len__(self) -> int:
        return len(self._clients)
