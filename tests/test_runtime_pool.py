from dataclasses import dataclass, field

import pytest

from rulematrix.model import Node, RuleChainData, RuleChainDef, TriggerSource
from rulematrix.runtime_pool import Endpoint, RuntimePool


class FlowNode(Node):
    node_type = "flow"

    def __init__(self, node_id="", target=""):
        super().__init__()
        self.id = node_id
        self.target = target

    def get_target_chain_id(self):
        return self.target


class PipelineNode(Node):
    node_type = "pipeline"

    def __init__(self, node_id="", targets=()):
        super().__init__()
        self.id = node_id
        self.targets = list(targets)

    def get_target_chain_ids(self):
        return self.targets


class HttpEndpoint(Node, Endpoint):
    node_type = "endpoint/http"

    def __init__(self, node_id=""):
        super().__init__()
        self.id = node_id


@dataclass
class FakeInstance:
    nodes: dict = field(default_factory=dict)

    def get_all_nodes(self):
        return self.nodes


@dataclass
class FakeRuntime:
    definition: RuleChainDef = field(default_factory=RuleChainDef)
    instance: FakeInstance = None

    def get_chain_instance(self):
        return self.instance


def _runtime(*nodes, view_type=""):
    definition = RuleChainDef(rule_chain=RuleChainData(attrs={"viewType": view_type}))
    return FakeRuntime(definition, FakeInstance({node.id: node for node in nodes}))


def test_register_get_and_list_ids():
    pool = RuntimePool()
    runtime = _runtime()
    pool.register("chain_a", runtime)
    assert pool.get("chain_a") is runtime
    assert pool.get("chain_b") is None
    assert pool.list_ids() == ["chain_a"]


def test_duplicate_register_raises():
    pool = RuntimePool()
    pool.register("chain_a", _runtime())
    with pytest.raises(ValueError, match="already registered"):
        pool.register("chain_a", _runtime())


def test_sub_chain_trigger_indexed_under_target():
    pool = RuntimePool()
    pool.register("main", _runtime(FlowNode("call", "child")))
    assert pool.get_triggers("child") == [
        TriggerSource(source_chain_id="main", node_id="call", node_type="flow", is_endpoint=False)
    ]


def test_multi_chain_trigger_skips_empty_targets():
    pool = RuntimePool()
    pool.register("main", _runtime(PipelineNode("pipe", ["one", "", "two"])))
    assert [s.node_id for s in pool.get_triggers("one")] == ["pipe"]
    assert [s.node_id for s in pool.get_triggers("two")] == ["pipe"]
    assert pool.get_triggers("") == []


def test_endpoint_triggers_its_own_chain():
    pool = RuntimePool()
    pool.register("api", _runtime(HttpEndpoint("ep")))
    (source,) = pool.get_triggers("api")
    assert source.is_endpoint is True
    assert source.node_id == "ep"


def test_unregister_removes_runtime_and_triggers():
    pool = RuntimePool()
    pool.register("main", _runtime(FlowNode("call", "child"), HttpEndpoint("ep")))
    pool.unregister("main")
    assert pool.get("main") is None
    assert pool.get_triggers("child") == []
    assert pool.get_triggers("main") == []
    pool.unregister("main")
    assert pool.list_ids() == []


def test_runtime_without_instance_has_no_triggers():
    pool = RuntimePool()
    pool.register("empty", FakeRuntime())
    assert pool.get_triggers("empty") == []


def test_list_by_view_type():
    pool = RuntimePool()
    api = _runtime(view_type="api")
    job = _runtime(view_type="job")
    pool.register("a", api)
    pool.register("b", job)
    assert pool.list_by_view_type("api") == [api]
    assert pool.list_by_view_type("none") == []


def test_get_triggers_returns_a_copy():
    pool = RuntimePool()
    source = TriggerSource(source_chain_id="x", node_id="n")
    pool.register_trigger("target", source)
    returned = pool.get_triggers("target")
    returned.clear()
    assert pool.get_triggers("target") == [source]


def test_register_and_unregister_trigger_matches_chain_and_node():
    pool = RuntimePool()
    first = TriggerSource(source_chain_id="x", node_id="n1", node_type="flow")
    second = TriggerSource(source_chain_id="x", node_id="n2", node_type="flow")
    pool.register_trigger("target", first)
    pool.register_trigger("target", second)
    pool.unregister_trigger("target", TriggerSource(source_chain_id="x", node_id="n1"))
    assert pool.get_triggers("target") == [second]
    pool.unregister_trigger("target", TriggerSource(source_chain_id="y", node_id="n2"))
    assert pool.get_triggers("target") == [second]