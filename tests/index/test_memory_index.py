from datetime import datetime, timedelta, timezone
import pytest
from aotrace.model import *
from aotrace.index import *

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

def make_message(n:int, tags:dict|None = None, type:str = TYPE_MESSAGE, recipient:str = "r" * 43, sender:str = "s" * 43) -> AoMessage:
    return AoMessage(
        id=get_arweave_id(f"message-{n}".encode()),
        sender=sender,
        recipient=recipient,
        type=type,
        tags=tags or {},
        block_height=n,
        ingested_at=T0 + timedelta(seconds=n))

async def test_descending_order_and_pagination():
    messages = [make_message(n) for n in range(5)]
    index = MemoryMessageIndex(messages)
    count, page = await index.get_incoming_messages("r" * 43, limit=2)
    assert count == 5
    assert [m.id for m in page] == [messages[4].id, messages[3].id]
    count, page = await index.get_incoming_messages("r" * 43, limit=2, cursor=page[-1].id)
    assert count is None
    assert [m.id for m in page] == [messages[2].id, messages[1].id]

async def test_ascending_order():
    messages = [make_message(n) for n in (3, 1, 2)]
    index = MemoryMessageIndex(messages)
    _, page = await index.get_incoming_messages("r" * 43, ascending=True)
    assert [m.block_height for m in page] == [1, 2, 3]

async def test_correlated_messages():
    match = make_message(1, tags={"Reference": "42", "Action": "Transfer"})
    legacy = make_message(2, tags={"Ref_": "42"})
    other_action = make_message(3, tags={"Reference": "42", "Action": "Eval"})
    other_ref = make_message(4, tags={"Reference": "43"})
    index = MemoryMessageIndex([match, legacy, other_action, other_ref])
    records = await index.get_correlated_messages("r" * 43, ["42"])
    assert {m.id for m in records} == {match.id, other_action.id}
    records = await index.get_correlated_messages("r" * 43, ["42"], actions=["Transfer"])
    assert [m.id for m in records] == [match.id]
    records = await index.get_correlated_messages("r" * 43, ["42"], use_old_ref_symbol=True)
    assert [m.id for m in records] == [legacy.id]
    assert await index.get_correlated_messages("x" * 43, ["42"]) == []

async def test_processes_and_modules():
    module = make_message(1, type=TYPE_MODULE)
    process = make_message(2, type=TYPE_PROCESS, tags={"Module": module.id})
    child = make_message(3, type=TYPE_PROCESS, tags={"From-Process": process.id})
    index = MemoryMessageIndex([module, process, child])
    assert (await index.get_modules())[1] == [module]
    assert (await index.get_processes(module.id))[1] == [process]
    assert (await index.get_spawned_processes(process.id, is_process=True))[1] == [child]
    assert (await index.get_spawned_processes("s" * 43))[1] == [child, process]
    assert await index.is_process(process.id)
    assert not await index.is_process(module.id)
    assert not await index.is_process("x" * 43)

async def test_is_process_cache_is_per_index():
    process = make_message(1, type=TYPE_PROCESS)
    empty = MemoryMessageIndex()
    full = MemoryMessageIndex([process])
    assert not await empty.is_process(process.id)
    assert await full.is_process(process.id)
    assert not await empty.is_process(process.id)
    #answers stay cached until they expire
    empty.add(process)
    assert not await empty.is_process(process.id)
    assert await MemoryMessageIndex([process]).is_process(process.id)

async def test_outgoing_messages():
    from_wallet = make_message(1)
    from_process = make_message(2, tags={"From-Process": "p" * 43})
    index = MemoryMessageIndex([from_wallet, from_process])
    assert (await index.get_outgoing_messages("s" * 43))[1] == [from_wallet]
    assert (await index.get_outgoing_messages("p" * 43, is_process=True))[1] == [from_process]

async def test_get_message_by_id():
    message = make_message(1)
    index = MemoryMessageIndex()
    index.add(message)
    assert len(index) == 1
    assert await index.get_message_by_id(message.id) is message
    assert await index.get_message_by_id("x" * 43) is None
    with pytest.raises(MalformedIdentifier):
        await index.get_message_by_id("short")
