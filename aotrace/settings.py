from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field, replace
import tomlkit
from tomlkit import TOMLDocument
from tomlkit.exceptions import ParseError
from dotenv import load_dotenv
from aotrace.model import ConfigError
from aotrace.connect import (EndpointConfig, KNOWN_ENDPOINTS, PRIMARY_CONFIG, FALLBACK_CONFIG, REQUEST_TIMEOUT,
                             ENABLE_FALLBACK, DEFAULT_GRAPHQL_URL, ClientRegistry, ResilientClient, SignerProvider,
                             TransportFactory)
from aotrace.index import GraphQLMessageIndex, DEFAULT_PAGE_SIZE
from aotrace.graph import GraphResolver, TraversalLimits

logger = logging.getLogger(__name__)

# Settings of the tracer, read from an aotrace.toml file and the environment.
# Utilizes https://github.com/sdispater/tomlkit to work with TOML data.
#
# The expected toml format is (all tables and keys are optional):
# --------------------------
# [client]
# request_timeout = 15.0
# enable_fallback = true
# primary = "randao"        #name of an endpoint
# fallback = "ao-testnet"
#
# [endpoints.my-cu]
# mode = "legacy"
# mu_url = "https://mu.example.com"
# cu_url = "https://cu.example.com"
# gateway_url = "https://arweave.net"
#
# [index]
# graphql_url = "https://arweave-search.goldsky.com/graphql"
# page_size = 100
# timeout = 30.0
#
# [graph]
# max_depth = 32
# max_nodes = 2000
# max_concurrency = 1
#
# [tokens]
# "<token process id>" = "ar-io"   #endpoint that evaluates this process
# --------------------------
# Precedence: environment variables, then the toml file, then the defaults.

CONFIG_FILE_NAME = "aotrace.toml"
CONFIG_ENV = "AOTRACE_CONFIG"

@dataclass
class ClientSettings:
    request_timeout:float = REQUEST_TIMEOUT
    enable_fallback:bool = ENABLE_FALLBACK
    primary:str = PRIMARY_CONFIG.name
    fallback:str = FALLBACK_CONFIG.name

@dataclass
class IndexSettings:
    graphql_url:str = DEFAULT_GRAPHQL_URL
    page_size:int = DEFAULT_PAGE_SIZE
    timeout:float = 30.0

@dataclass
class Settings:
    client:ClientSettings = field(default_factory=ClientSettings)
    endpoints:dict[str, EndpointConfig] = field(default_factory=lambda: dict(KNOWN_ENDPOINTS))
    index:IndexSettings = field(default_factory=IndexSettings)
    graph:TraversalLimits = field(default_factory=TraversalLimits)
    tokens:dict[str, str] = field(default_factory=dict)

    def endpoint(self, name:str) -> EndpointConfig:
        if name not in self.endpoints:
            raise ConfigError(f"Unknown endpoint '{name}'. Known endpoints are '{list(self.endpoints)}'.")
        return self.endpoints[name]

def load_settings(path:str|None = None) -> Settings:
    """Loads the settings. Without an explicit path, '$AOTRACE_CONFIG' or './aotrace.toml' is used if it exists."""
    load_dotenv()
    if path is None:
        path = os.environ.get(CONFIG_ENV)
        if path is None and os.path.exists(CONFIG_FILE_NAME):
            path = CONFIG_FILE_NAME
    if path is not None:
        if not os.path.exists(path):
            raise ConfigError(f"Config file '{path}' does not exist.")
        logger.debug(f"Reading settings from '{path}'")
        settings = loads_settings(_read_toml_file(path))
    else:
        settings = Settings()
    return apply_env_overrides(settings, os.environ)

def loads_settings(toml:str|TOMLDocument) -> Settings:
    if isinstance(toml, str):
        try:
            doc = tomlkit.loads(toml)
        except ParseError as e:
            raise ConfigError(f"Invalid toml: {e}") from e
    else:
        doc = toml
    data = doc.unwrap()
    _validate_data(data)

    settings = Settings()
    try:
        if "client" in data:
            settings.client = replace(settings.client, **data["client"])
        for name, values in data.get("endpoints", {}).items():
            settings.endpoints[name] = EndpointConfig(name=name, **values)
        if "index" in data:
            settings.index = replace(settings.index, **data["index"])
        if "graph" in data:
            settings.graph = replace(settings.graph, **data["graph"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid settings: {e}") from e
    settings.tokens = {str(k): str(v) for k, v in data.get("tokens", {}).items()}
    _validate_settings(settings)
    return settings

def apply_env_overrides(settings:Settings, environ:dict[str, str]) -> Settings:
    client = settings.client
    if "AOTRACE_REQUEST_TIMEOUT" in environ:
        client = replace(client, request_timeout=_parse_float("AOTRACE_REQUEST_TIMEOUT", environ))
    if "AOTRACE_ENABLE_FALLBACK" in environ:
        client = replace(client, enable_fallback=_parse_bool("AOTRACE_ENABLE_FALLBACK", environ))
    index = settings.index
    if "AOTRACE_GRAPHQL_URL" in environ:
        index = replace(index, graphql_url=environ["AOTRACE_GRAPHQL_URL"])
    graph = settings.graph
    try:
        if "AOTRACE_MAX_DEPTH" in environ:
            graph = replace(graph, max_depth=_parse_limit("AOTRACE_MAX_DEPTH", environ))
        if "AOTRACE_MAX_NODES" in environ:
            graph = replace(graph, max_nodes=_parse_limit("AOTRACE_MAX_NODES", environ))
        if "AOTRACE_MAX_CONCURRENCY" in environ:
            graph = replace(graph, max_concurrency=_parse_int("AOTRACE_MAX_CONCURRENCY", environ))
    except ValueError as e:
        raise ConfigError(str(e)) from e
    settings = replace(settings, client=client, index=index, graph=graph)
    _validate_settings(settings)
    return settings

#===================================================================================================
# Builders
#===================================================================================================
def build_client(settings:Settings, primary:str|None = None, signer_provider:SignerProvider|None = None,
                 transport_factory:TransportFactory|None = None) -> ResilientClient:
    return ResilientClient(
        primary=settings.endpoint(primary or settings.client.primary),
        fallback=settings.endpoint(settings.client.fallback),
        request_timeout=settings.client.request_timeout,
        enable_fallback=settings.client.enable_fallback,
        signer_provider=signer_provider,
        transport_factory=transport_factory,
    )

def build_clients(settings:Settings, signer_provider:SignerProvider|None = None,
                  transport_factory:TransportFactory|None = None) -> ClientRegistry:
    """A registry with the default client and one client per endpoint named in the [tokens] table."""
    registry = ClientRegistry(default=build_client(settings, None, signer_provider, transport_factory))
    by_endpoint:dict[str, ResilientClient] = {}
    for process_id, endpoint_name in settings.tokens.items():
        if endpoint_name not in by_endpoint:
            by_endpoint[endpoint_name] = build_client(settings, endpoint_name, signer_provider, transport_factory)
        registry.register(process_id, by_endpoint[endpoint_name])
    return registry

def build_index(settings:Settings) -> GraphQLMessageIndex:
    return GraphQLMessageIndex(url=settings.index.graphql_url, timeout=settings.index.timeout)

def build_resolver(settings:Settings, signer_provider:SignerProvider|None = None) -> GraphResolver:
    return GraphResolver(
        index=build_index(settings),
        clients=build_clients(settings, signer_provider),
        limits=settings.graph,
        page_size=settings.index.page_size,
    )

#===================================================================================================
# Helpers
#===================================================================================================
def _read_toml_file(file_path:str) -> TOMLDocument:
    try:
        with open(file_path, 'r') as f:
            return tomlkit.loads(f.read())
    except ParseError as e:
        raise ConfigError(f"Invalid toml in '{file_path}': {e}") from e

_VALID_KEYS = {
    "client": ["request_timeout", "enable_fallback", "primary", "fallback"],
    "index": ["graphql_url", "page_size", "timeout"],
    "graph": ["max_depth", "max_nodes", "max_concurrency"],
}
_VALID_ENDPOINT_KEYS = ["mode", "mu_url", "cu_url", "gateway_url"]

def _validate_data(data:dict) -> None:
    valid_top_level_keys = list(_VALID_KEYS) + ["endpoints", "tokens"]
    for key in data.keys():
        if key not in valid_top_level_keys:
            raise ConfigError(f"Invalid top level key '{key}'. Valid keys are '{valid_top_level_keys}'.")
        if not isinstance(data[key], dict):
            raise ConfigError(f"'{key}' must be a table. Use [{key}] to define it.")
    for key, valid_keys in _VALID_KEYS.items():
        for sub_key in data.get(key, {}).keys():
            if sub_key not in valid_keys:
                raise ConfigError(f"Invalid {key} key '{sub_key}'. Valid keys are '{valid_keys}'.")
    for name, endpoint in data.get("endpoints", {}).items():
        if not isinstance(endpoint, dict):
            raise ConfigError(f"Endpoint '{name}' must be a table. Use [endpoints.{name}] to define it.")
        for sub_key in endpoint.keys():
            if sub_key not in _VALID_ENDPOINT_KEYS:
                raise ConfigError(f"Invalid key '{sub_key}' for endpoint '{name}'. Valid keys are '{_VALID_ENDPOINT_KEYS}'.")
        for required in ("mu_url", "cu_url"):
            if required not in endpoint:
                raise ConfigError(f"Endpoint '{name}' requires '{required}'.")

def _validate_settings(settings:Settings) -> None:
    settings.endpoint(settings.client.primary)
    settings.endpoint(settings.client.fallback)
    for process_id, endpoint_name in settings.tokens.items():
        if endpoint_name not in settings.endpoints:
            raise ConfigError(f"Token '{process_id}' refers to unknown endpoint '{endpoint_name}'.")
    if settings.client.request_timeout <= 0:
        raise ConfigError("client.request_timeout must be positive.")
    if settings.index.page_size < 1:
        raise ConfigError("index.page_size must be at least 1.")

def _parse_float(key:str, environ:dict[str, str]) -> float:
    try:
        return float(environ[key])
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, but was '{environ[key]}'.") from e

def _parse_int(key:str, environ:dict[str, str]) -> int:
    try:
        return int(environ[key])
    except ValueError as e:
        raise ConfigError(f"{key} must be an integer, but was '{environ[key]}'.") from e

def _parse_limit(key:str, environ:dict[str, str]) -> int|None:
    if environ[key].strip().lower() in ("", "none"):
        return None
    return _parse_int(key, environ)

def _parse_bool(key:str, environ:dict[str, str]) -> bool:
    value = environ[key].strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{key} must be a boolean, but was '{environ[key]}'.")
