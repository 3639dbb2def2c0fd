# rulematrix

Building blocks for a rule-chain engine. A rule chain is a small graph of
nodes joined by typed connections (`Success`, `Failure`, ...). A message is
passed from node to node along those connections. Branches run on a worker
pool, and a chain is finished only when every branch has finished.

The package needs nothing beyond the standard library.

```
pip install .
pip install ".[test]"
pytest
```

## Modules

- `rulematrix.model`: `RuleChainDef`, `RuleChainData`, `NodeDef`,
  `Connection`, `RuleChainOnError` and `OnErrorStrategy` (`halt`,
  `continue`, `redirect`; anything unknown reads as `halt`). Definitions
  are read with `RuleChainDef.from_dict` and written back with `to_dict`.
  Also `RuleMsg` (type, data, metadata, an object map, a data format and a
  fresh id; `copy()` gives independent metadata), `Fault` (an exception
  with a numeric `code`), `TriggerSource` and the `Node` base class.
- `rulematrix.chain_instance.ChainInstance`: the nodes of one chain,
  their definitions and their outgoing connections; `get_root_node_ids()`
  returns the nodes that no connection leads into, and `destroy()` destroys
  every node.
- `rulematrix.node_context.NodeCtx`: the context a node runs in. It provides
  `tell_success`, `tell_next`, `tell_failure`, `handle_error`, `new_msg`,
  and `debug`/`info`/`warn`/`error` logging with `chainId` and `nodeId`
  fields.
- `rulematrix.scheduler.PoolScheduler`: a thread pool. `submit(task)`
  queues a task. `stop()` waits for queued tasks, and after it `submit`
  raises `SchedulerClosedError`. The pool also works as a context manager.
- `rulematrix.node_manager.NodeManager`: node prototypes keyed by
  `node_type`; `new_node(type)` creates a fresh instance. Duplicate or
  unknown types raise `ComponentError`.
- `rulematrix.func_manager.NodeFuncManager`: function definitions
  (`NodeFuncObject` with `DynamicConfigField`s). A field type outside
  `ConfigFieldType`, or a `not_editable` field with no default, raises
  `FuncRegistrationError`.
- `rulematrix.coreobj_registry.CoreObjRegistry`: `CoreObjDef`s keyed by
  SID. A SID that does not match `TypeName_V1` or `TypeName_V1_0` logs a
  warning but is still registered. A list prototype whose SID lacks the
  `[]` prefix also logs a warning.
- `rulematrix.faults.FaultRegistry`: `Fault`s keyed by code. Registering a
  code twice raises `DuplicateFaultError`.
- `rulematrix.runtime_pool.RuntimePool`: runtimes keyed by chain id, with
  an index of which nodes trigger which chain. The index covers nodes with
  `get_target_chain_id()` or `get_target_chain_ids()`, and nodes derived
  from `Endpoint`. A runtime is any object with `get_chain_instance()` and
  a `definition`.
- `rulematrix.loader`: `FileProvider(base_dir, priority)`. A priority of 0,
  or one outside -1..100, becomes 50. `TraversableProvider(root)` reads from
  any traversable tree, such as `importlib.resources.files(...)`.
  `HybridLoader(*providers, logger=None)` asks providers from the highest
  priority down, merges directory listings, and walks the merged tree with
  `walk_dir`. A walk callback can raise `SkipDir`.
- `rulematrix.logs`: `StdLogger`, which writes to the `rulematrix`
  standard logging logger and appends fields as `key=value`. It also has
  `set_logger`/`get_logger` for the process-wide logger, and the functions
  `debug`, `info`, `warn` and `error`, which take a node context.

## Running a chain by hand

```python
import json
import threading
from types import SimpleNamespace

from rulematrix.chain_instance import ChainInstance
from rulematrix.model import Connection, Node, NodeDef, RuleChainDef, RuleMsg
from rulematrix.node_context import NodeCtx
from rulematrix.node_manager import NodeManager
from rulematrix.scheduler import PoolScheduler


class Upper(Node):
    node_type = "upper"

    def on_msg(self, ctx, msg):
        msg.data = msg.data.upper()
        ctx.tell_success(msg)


manager = NodeManager()
manager.register(Upper())

definition = RuleChainDef.from_dict(json.loads("""
{
  "ruleChain": {"id": "demo"},
  "metadata": {
    "nodes": [{"id": "a", "type": "upper"}, {"id": "b", "type": "upper"}],
    "connections": [{"fromId": "a", "toId": "b", "type": "Success"}]
  }
}
"""))

chain = ChainInstance(definition)
for node_def in definition.nodes:
    node = manager.new_node(node_def.type)
    node.id, node.name = node_def.id, node_def.name
    node.init(node_def.configuration)
    chain.add_node(node, node_def)
for conn in definition.connections:
    chain.add_connection(conn)

# An entry edge into every root node lets one context start them all.
for root_id in chain.get_root_node_ids():
    chain.add_connection(Connection("entry", root_id, "Success"))

done = threading.Event()
outcome = {}

def on_end(msg, err):
    outcome.update(msg=msg, err=err)
    done.set()

with PoolScheduler(4) as scheduler:
    runtime = SimpleNamespace(scheduler=scheduler, logger=None)
    entry = NodeCtx(None, runtime, chain, NodeDef(id="entry"), on_end=on_end)
    entry.tell_next(RuleMsg(type="TEXT", data="hello"), "Success")
    done.wait(5)

print(outcome["msg"].data)  # HELLO
```

Each edge gets its own copy of the message. A diamond-shaped chain therefore
runs the joining node once for each incoming branch.

## Errors in a chain

`ctx.handle_error(msg, err)` records the error in the message metadata. It
sets the `error` and `errorTimestamp` keys, plus `errorCode` for a `Fault`
and `errorNodeId`/`errorNodeName`. It then routes the message along
`Failure`. If the node has no `Failure` connection, the error travels up
with the branch's completion and reaches `on_end`. An exception raised
inside a node's `on_msg` is caught as well. It is reported as
`node execution panic: ...`, and the aspects' `after` hooks still run.

A message of type `STOP_PROPAGATION` ends its branch at once.

## What the package does not do

The package has no runtime object that builds a chain from its definition
and executes it. It does not run chains from their root nodes, wait for
results, reload a chain or apply the `onError` strategy. `onError` is parsed
into `RuleChainOnError` and nothing more. There is also no JSON parser
class (use `json.loads` with `from_dict`), no pool of shared node instances,
no combined registry object and no command-line tool. You wire the pieces
yourself, as in the example above.