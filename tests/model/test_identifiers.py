import pytest
from aotrace.model import *

def test_arweave_id_format():
    assert is_arweave_id("0syT13r0s0tgPmIed95bJnuSqaD29HQNN8D3ElLSrsc")
    assert is_arweave_id("a" * 43)
    assert is_arweave_id("-_" + "Z" * 41)
    assert not is_arweave_id("a" * 42)
    assert not is_arweave_id("a" * 44)
    assert not is_arweave_id("a" * 42 + "=")
    assert not is_arweave_id("")
    assert not is_arweave_id(None)

def test_enforce_arweave_id():
    assert enforce_arweave_id("a" * 43) == "a" * 43
    with pytest.raises(MalformedIdentifier):
        enforce_arweave_id("not-an-id")
    #also a ValueError, so generic validation code catches it
    with pytest.raises(ValueError):
        enforce_arweave_id("not-an-id", "process id")

def test_get_arweave_id_is_deterministic():
    id_a = get_arweave_id(b"hello")
    assert id_a == get_arweave_id(b"hello")
    assert id_a != get_arweave_id(b"hello world")
    assert is_arweave_id(id_a)
    assert is_arweave_id(get_random_arweave_id())
    assert get_random_arweave_id() != get_random_arweave_id()
