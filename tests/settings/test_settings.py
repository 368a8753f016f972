import pytest
from aotrace.model import ConfigError
from aotrace.connect import PRIMARY_CONFIG, FALLBACK_CONFIG, REQUEST_TIMEOUT
from aotrace.settings import *
import helpers_settings as helpers

TOKEN = "t" * 43

FULL_CONFIG = f"""
[client]
request_timeout = 5.0
enable_fallback = false
primary = "my-cu"

[endpoints.my-cu]
mu_url = "https://mu.example.com/"
cu_url = "https://cu.example.com"

[index]
graphql_url = "https://gateway.example.com/graphql"
page_size = 50

[graph]
max_depth = 8
max_nodes = 100
max_concurrency = 2

[tokens]
"{TOKEN}" = "ar-io"
"""

def test_defaults_without_config_file(monkeypatch, tmp_path):
    helpers.clean_env(monkeypatch, tmp_path)
    settings = load_settings()
    assert settings.client.request_timeout == REQUEST_TIMEOUT
    assert settings.client.enable_fallback is True
    assert settings.endpoint(settings.client.primary) == PRIMARY_CONFIG
    assert settings.endpoint(settings.client.fallback) == FALLBACK_CONFIG
    assert settings.graph.max_depth == 32
    assert settings.graph.max_nodes == 2000
    assert settings.graph.max_concurrency == 1
    assert settings.tokens == {}

def test_load_config_file(monkeypatch, tmp_path):
    helpers.clean_env(monkeypatch, tmp_path)
    path = helpers.write_config(tmp_path, FULL_CONFIG, "custom.toml")
    settings = load_settings(path)
    assert settings.client.request_timeout == 5.0
    assert settings.client.enable_fallback is False
    assert settings.endpoint("my-cu").mu_url == "https://mu.example.com"
    assert settings.index.graphql_url == "https://gateway.example.com/graphql"
    assert settings.index.page_size == 50
    assert settings.graph.max_depth == 8
    assert settings.graph.max_concurrency == 2
    assert settings.tokens == {TOKEN: "ar-io"}

def test_config_file_in_working_directory(monkeypatch, tmp_path):
    helpers.clean_env(monkeypatch, tmp_path)
    helpers.write_config(tmp_path, "[graph]\nmax_depth = 3\n")
    assert load_settings().graph.max_depth == 3

def test_config_file_from_environment(monkeypatch, tmp_path):
    helpers.clean_env(monkeypatch, tmp_path)
    path = helpers.write_config(tmp_path, "[graph]\nmax_nodes = 7\n", "other.toml")
    monkeypatch.setenv("AOTRACE_CONFIG", path)
    assert load_settings().graph.max_nodes == 7

def test_environment_overrides_file(monkeypatch, tmp_path):
    helpers.clean_env(monkeypatch, tmp_path)
    path = helpers.write_config(tmp_path, FULL_CONFIG)
    monkeypatch.setenv("AOTRACE_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("AOTRACE_ENABLE_FALLBACK", "yes")
    monkeypatch.setenv("AOTRACE_GRAPHQL_URL", "https://other.example.com/graphql")
    monkeypatch.setenv("AOTRACE_MAX_DEPTH", "none")
    monkeypatch.setenv("AOTRACE_MAX_NODES", "10")
    monkeypatch.setenv("AOTRACE_MAX_CONCURRENCY", "3")
    settings = load_settings(path)
    assert settings.client.request_timeout == 2.5
    assert settings.client.enable_fallback is True
    assert settings.index.graphql_url == "https://other.example.com/graphql"
    assert settings.graph.max_depth is None
    assert settings.graph.max_nodes == 10
    assert settings.graph.max_concurrency == 3
    #untouched values still come from the file
    assert settings.index.page_size == 50

@pytest.mark.parametrize("key,value", [
    ("AOTRACE_REQUEST_TIMEOUT", "soon"),
    ("AOTRACE_REQUEST_TIMEOUT", "0"),
    ("AOTRACE_ENABLE_FALLBACK", "maybe"),
    ("AOTRACE_MAX_NODES", "many"),
    ("AOTRACE_MAX_CONCURRENCY", "0"),
])
def test_invalid_environment(monkeypatch, tmp_path, key, value):
    helpers.clean_env(monkeypatch, tmp_path)
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigError):
        load_settings()

@pytest.mark.parametrize("content", [
    "[unknown]\nkey = 1\n",
    "[client]\ntimeout = 1\n",
    "[client]\nprimary = \"nowhere\"\n",
    "[endpoints.x]\nmu_url = \"https://mu.example.com\"\n",
    "[endpoints.x]\nmu_url = \"a\"\ncu_url = \"b\"\nmode = \"other\"\n",
    "[graph]\nmax_concurrency = 0\n",
    "[tokens]\nabc = \"nowhere\"\n",
    "client = 1\n",
    "[client\n",
])
def test_invalid_config(content):
    with pytest.raises(ConfigError):
        loads_settings(content)

def test_missing_explicit_config_file(monkeypatch, tmp_path):
    helpers.clean_env(monkeypatch, tmp_path)
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "missing.toml"))

def test_build_clients():
    settings = loads_settings(FULL_CONFIG)
    registry = build_clients(settings)
    assert registry.default.primary.name == "my-cu"
    assert registry.default.fallback == FALLBACK_CONFIG
    assert registry.default.request_timeout == 5.0
    assert registry.default.enable_fallback is False
    assert TOKEN in registry
    assert registry.get(TOKEN).primary.name == "ar-io"

def test_build_resolver():
    settings = loads_settings(FULL_CONFIG)
    resolver = build_resolver(settings)
    assert resolver.limits.max_depth == 8
    assert resolver.page_size == 50
    assert resolver.index.url == "https://gateway.example.com/graphql"
