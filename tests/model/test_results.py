from datetime import datetime, timezone
from aotrace.model import *

def test_result_lists_are_always_present():
    result = MessageResult.model_validate({"Output": "ok", "Messages": None, "Spawns": None})
    assert result.messages == []
    assert result.spawns == []
    assert result.errors == []
    assert MessageResult().messages == []

def test_result_error_is_folded_into_errors():
    result = MessageResult.model_validate({"Error": "boom", "Errors": ["first"]})
    assert result.errors == ["first", "boom"]
    result = MessageResult.model_validate({"Error": {"code": 1}})
    assert result.errors == ['{"code": 1}']

def test_result_parses_output_messages():
    result = MessageResult.model_validate({
        "Messages": [{
            "Target": "p" * 43,
            "Tags": [{"name": "Action", "value": "Transfer"}, {"name": "Reference", "value": "42"}],
            "Data": "hi",
        }],
        "GasUsed": 10,
    })
    assert result.gas_used == 10
    output = result.messages[0]
    assert output.target == "p" * 43
    assert output.tag("Action") == "Transfer"
    assert output.tag("Missing") is None
    assert output.reference_tag() == Tag("Reference", "42")

def test_reference_tag_prefers_current_symbol():
    output = OutputMessage(target="p" * 43, tags=[Tag("Ref_", "1"), Tag("Reference", "2")])
    assert output.reference_tag() == Tag("Reference", "2")
    legacy = OutputMessage(target="p" * 43, tags=[("Ref_", "7")])
    assert legacy.reference_tag() == Tag("Ref_", "7")
    assert OutputMessage(target="p" * 43).reference_tag() is None

def test_output_message_tag_uses_last_value():
    output = OutputMessage(tags=[Tag("Action", "A"), Tag("Action", "B")])
    assert output.tag("Action") == "B"

def test_result_serializes_with_wire_names():
    result = MessageResult.model_validate({"Messages": [{"Target": "x", "Tags": [{"name": "a", "value": "b"}]}]})
    dumped = result.model_dump(by_alias=True)
    assert dumped["Messages"][0]["Target"] == "x"
    assert dumped["Messages"][0]["Tags"] == [{"name": "a", "value": "b"}]

def test_prettified_parses_json_data():
    result = MessageResult.model_validate({
        "Output": {"data": '{"balance": "5"}'},
        "Messages": [{"Target": "x", "Data": '[1, 2]'}, {"Target": "y", "Data": "not json"}],
    })
    pretty = result.prettified()
    assert pretty.output == {"data": {"balance": "5"}}
    assert pretty.messages[0].data == [1, 2]
    assert pretty.messages[1].data == "not json"
    #the source result is unchanged
    assert result.messages[0].data == '[1, 2]'

def test_message_tree_walk_is_preorder():
    def msg(id:str) -> AoMessage:
        return AoMessage(id=id * 43, sender="s", recipient="r", type=TYPE_MESSAGE)
    tree = MessageTree(msg("a"), children=(
        MessageTree(msg("b"), children=(MessageTree(msg("c")),)),
        MessageTree(msg("d")),
    ))
    assert [t.id[0] for t in tree.walk()] == ["a", "b", "c", "d"]
    assert tree.size() == 4

def test_message_to_dict():
    ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
    message = AoMessage(
        id="m" * 43, sender="s" * 43, recipient="r" * 43, type=TYPE_MESSAGE,
        tags={"Action": "Eval", "Pushed-For": "x" * 43}, block_height=5, block_timestamp=ts)
    assert message.action == "Eval"
    assert message.pushed_for == "x" * 43
    d = MessageTree(message, result=MessageResult()).to_dict()
    assert d["from"] == "s" * 43
    assert d["to"] == "r" * 43
    assert d["blockHeight"] == 5
    assert d["blockTimestamp"] == ts.isoformat()
    assert d["result"]["Messages"] == []
    assert d["children"] == []

def test_tags_to_dict_keeps_last_value():
    tags = tags_to_dict([{"name": "A", "value": "1"}, Tag("A", "2"), Tag("B", "3")])
    assert tags == {"A": "2", "B": "3"}

def test_empty_result():
    result = MessageResult.empty()
    assert result.output == "No result"
    assert result.messages == []
    assert result.errors == []
