from flowpack.model.document import (
    Document,
    FlowRecord,
    Node,
    NodeSettings,
    add_connection,
    iter_flows,
)
from flowpack.structural.checker import check_document, is_position_pair
from flowpack.utils.graph import build_graph, orphan_nodes, undeclared_nodes


def _doc(nodes, connections=None, name="Doc"):
    return Document(name=name, nodes=[Node.from_dict(n) for n in nodes], connections=connections or {})


def _node(name, **kw):
    return dict({"id": f"id-{name}", "name": name, "type": "n8n-nodes-base.set", "position": [0, 0]}, **kw)


def test_iter_flows_defaults_and_skips_malformed():
    connections = {
        "A": {
            "main": [
                [{"node": "B"}, {"type": "main"}],
                None,
                [{"node": "C", "type": "ai_tool", "index": 2}],
            ],
            "broken": "nope",
        },
        "Z": [],
    }
    flows = list(iter_flows(connections))
    assert [f.key() for f in flows] == [
        ("A", "main", 0, "B", "main", 0),
        ("A", "main", 2, "C", "ai_tool", 2),
    ]


def test_add_connection_pads_and_appends():
    connections = {}
    add_connection(connections, FlowRecord("A", "main", 1, "B"))
    add_connection(connections, FlowRecord("A", "main", 1, "C", input_index=1))
    add_connection(connections, FlowRecord("A", "main", 0, "D"))
    assert connections == {
        "A": {
            "main": [
                [{"node": "D", "type": "main", "index": 0}],
                [
                    {"node": "B", "type": "main", "index": 0},
                    {"node": "C", "type": "main", "index": 1},
                ],
            ]
        }
    }


def test_node_settings_file_round_trip():
    settings = NodeSettings(disabled=False, execute_once=True, retry_on_fail=True, max_tries=7)
    on_disk = settings.to_file()
    assert on_disk == {"execute_once": True, "retry_on_fail": True, "max_tries": 7, "wait_between_tries": 1000}
    back = NodeSettings.from_file(on_disk)
    assert back.disabled is None
    assert dict(back.items()) == {"executeOnce": True, "retryOnFail": True, "maxTries": 7, "waitBetweenTries": 1000}


def test_explicit_counters_without_retry_are_kept():
    assert NodeSettings(max_tries=2).to_file() == {"max_tries": 2}


def test_node_dict_round_trip_keeps_extra_keys():
    raw = _node("A", typeVersion=2, onError="stopWorkflow", disabled=True, color="#ff0000")
    node = Node.from_dict(raw)
    assert node.extra == {"onError": "stopWorkflow"}
    assert node.settings.disabled is True
    assert node.to_dict() == dict(raw, parameters={})


def test_empty_optional_node_fields_are_dropped():
    raw = _node("A", credentials={}, notes="", color="")
    out = Node.from_dict(raw).to_dict()
    assert "credentials" not in out
    assert "notes" not in out
    assert "color" not in out


def test_document_to_dict_omits_missing_id_and_timestamps():
    out = _doc([_node("A")]).to_dict()
    assert "id" not in out
    assert "createdAt" not in out and "updatedAt" not in out
    assert "connections" not in out
    assert out["isArchived"] is False
    assert out["triggerCount"] == 0


def test_credential_usage():
    doc = _doc([
        _node("A", credentials={"slackApi": {"id": "1"}}),
        _node("B", credentials={"slackApi": {"id": "1"}, "openAiApi": {"id": "2"}}),
    ])
    assert doc.credential_usage() == {"slackApi": ["A", "B"], "openAiApi": ["B"]}


def test_position_pair():
    assert is_position_pair([1, 2.5])
    assert is_position_pair((0, 0))
    assert not is_position_pair([1])
    assert not is_position_pair([1, "2"])
    assert not is_position_pair([True, 1])
    assert not is_position_pair({"x": 1, "y": 2})


def test_check_document_invalid_position_and_name():
    doc = _doc([_node("A", position=[1, 2, 3])], name="")
    assert check_document(doc) == [
        "Workflow name is missing",
        "Node A has an invalid position (expected [x, y])",
    ]


def test_check_document_valid():
    doc = _doc(
        [_node("A"), _node("B")],
        {"A": {"main": [[{"node": "B", "type": "main", "index": 0}]]}},
    )
    assert check_document(doc) == []


def test_unknown_source_without_flows_is_reported():
    doc = _doc([_node("A")], {"Ghost": {"main": []}})
    assert check_document(doc) == ["Connection references unknown source node: Ghost"]


def test_graph_helpers():
    doc = _doc(
        [_node("A"), _node("B"), _node("Lonely")],
        {"A": {"main": [[{"node": "B"}, {"node": "Ghost"}], [{"node": "B", "index": 1}]]}},
    )
    G = build_graph(doc)
    assert G.number_of_edges() == 3
    assert undeclared_nodes(G) == ["Ghost"]
    assert orphan_nodes(G) == ["Lonely"]
