from dataclasses import dataclass, replace
from typing import Literal

# Endpoint configurations of the AO network.
# PRIMARY_CONFIG and FALLBACK_CONFIG are process-wide, read-only constants.

ConnectMode = Literal["legacy", "mainnet"]

DEFAULT_GATEWAY_URL = "https://arweave.net"
DEFAULT_GRAPHQL_URL = "https://arweave-search.goldsky.com/graphql"

# Seconds the primary endpoint gets before the client fails over.
REQUEST_TIMEOUT = 15.0
# Set to False to always use the primary endpoint.
ENABLE_FALLBACK = True

@dataclass(frozen=True)
class EndpointConfig:
    """One backend deployment: its messenger unit, compute unit and gateway.

    'mode' labels the deployment. Both modes speak the same HTTP protocol, so it only shows up
    in the client's logs and does not change how requests are made.
    """
    name:str
    mu_url:str
    cu_url:str
    gateway_url:str = DEFAULT_GATEWAY_URL
    mode:ConnectMode = "legacy"

    def __post_init__(self):
        if not self.name:
            raise ValueError("name must be a non-empty string.")
        if self.mode not in ("legacy", "mainnet"):
            raise ValueError(f"mode must be 'legacy' or 'mainnet', but was '{self.mode}'.")
        #normalize urls so paths can be appended
        object.__setattr__(self, "mu_url", self.mu_url.rstrip("/"))
        object.__setattr__(self, "cu_url", self.cu_url.rstrip("/"))
        object.__setattr__(self, "gateway_url", self.gateway_url.rstrip("/"))

    def with_overrides(self, **kwargs) -> "EndpointConfig":
        return replace(self, **kwargs)

PRIMARY_CONFIG = EndpointConfig(
    name="randao",
    mu_url="https://ur-mu.randao.net",
    cu_url="https://ur-pcu.randao.net",
)

FALLBACK_CONFIG = EndpointConfig(
    name="ao-testnet",
    mu_url="https://mu.ao-testnet.xyz",
    cu_url="https://cu.ao-testnet.xyz",
)

AR_IO_CONFIG = EndpointConfig(
    name="ar-io",
    mu_url=FALLBACK_CONFIG.mu_url,
    cu_url="https://cu.ardrive.io",
)

KNOWN_ENDPOINTS:dict[str, EndpointConfig] = {c.name: c for c in (PRIMARY_CONFIG, FALLBACK_CONFIG, AR_IO_CONFIG)}
