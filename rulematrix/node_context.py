"""Execution context of one node inside a running rule chain."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional

from rulematrix import logs
from rulematrix.model import (
    META_ERROR,
    META_ERROR_CODE,
    META_ERROR_NODE_ID,
    META_ERROR_NODE_NAME,
    META_ERROR_TIMESTAMP,
    MSG_TYPE_STOP_PROPAGATION,
    TEXT,
    Fault,
    NodeDef,
    RuleMsg,
)

OnEnd = Callable[[Optional[RuleMsg], Optional[BaseException]], None]

ROOT_NODE_ID = "root"
SUCCESS = "Success"
FAILURE = "Failure"


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _run_node(ctx: NodeCtx, node: Any, msg: RuleMsg) -> None:
    """Run a node under its context's aspects, turning crashes into errors.

    Before aspects run first; one that raises skips the node and completes
    the branch with its error. An exception escaping the node is reported as
    a node execution panic. After aspects always run with the final outcome.
    """
    processed = msg
    err: BaseException | None = None
    try:
        for aspect in ctx.aspects:
            try:
                processed = aspect.before(ctx, processed)
            except Exception as exc:
                err = exc
                ctx._child_done(processed, err)
                return
        node.on_msg(ctx, processed)
    except Exception as exc:
        err = RuntimeError(f"node execution panic: {exc}")
        err.__cause__ = exc
        ctx.error("Recovered from panic in node execution", "panic", exc)
        ctx._child_done(processed, err)
    finally:
        for aspect in ctx.aspects:
            aspect.after(ctx, processed, err)


class NodeCtx:
    """Routes messages from one node to the next and tracks branch completion.

    Each context counts the branches it started; when all of them have
    finished, completion is passed to the parent context, and the root
    context finally calls ``on_end``.
    """

    def __init__(
        self,
        context: Any,
        runtime: Any,
        chain: Any,
        self_def: NodeDef | None,
        parent: NodeCtx | None = None,
        on_end: OnEnd | None = None,
        aspects: Iterable[Any] = (),
        callback: Any = None,
    ) -> None:
        self.context = context
        self._runtime = runtime
        self._chain = chain
        self._self_def = self_def
        self._parent = parent
        self._on_end = on_end
        self.aspects = list(aspects)
        self._callback = callback
        self._lock = threading.Lock()
        self._waiting = 0
        # Error from tell_failure, propagated when no Failure route exists.
        self._pending_err: BaseException | None = None

    # --- completion tracking ---

    def _child_ready(self) -> None:
        with self._lock:
            self._waiting += 1

    def _child_done(self, msg: RuleMsg | None, err: BaseException | None) -> None:
        if self._callback is not None and self.node_id != ROOT_NODE_ID:
            self._callback.on_node_completed(self, msg, err)
        with self._lock:
            self._waiting -= 1
            finished = self._waiting <= 0
        if not finished:
            return
        if self._parent is not None:
            self._parent._child_done(msg, err)
        elif self._on_end is not None:
            self._on_end(msg, err)

    # --- accessors ---

    @property
    def runtime(self) -> Any:
        return self._runtime

    @property
    def config(self) -> dict[str, Any]:
        return self._self_def.configuration if self._self_def is not None else {}

    @property
    def self_def(self) -> NodeDef | None:
        return self._self_def

    @property
    def node_id(self) -> str:
        return self._self_def.id if self._self_def is not None else ""

    @property
    def previous_node_id(self) -> str:
        return self._parent.node_id if self._parent is not None else ""

    @property
    def logger(self) -> Any:
        if self._runtime is None:
            return None
        return getattr(self._runtime, "logger", None)

    def _definition(self) -> Any:
        if self._chain is None:
            return None
        return getattr(self._chain, "definition", None)

    @property
    def chain_id(self) -> str:
        definition = self._definition()
        return definition.rule_chain.id if definition is not None else ""

    def chain_config(self) -> Mapping[str, Any] | None:
        """Return the configuration of the current rule chain, if there is one."""
        definition = self._definition()
        return definition.rule_chain.configuration if definition is not None else None

    def get_node(self) -> Any:
        """Return this context's node instance from the chain, or None."""
        if self._chain is None or self._self_def is None:
            return None
        return self._chain.get_node(self._self_def.id)

    # --- routing ---

    def tell_success(self, msg: RuleMsg) -> None:
        self.tell_next(msg, SUCCESS)

    def tell_failure(self, msg: RuleMsg, err: BaseException) -> None:
        """Route the message along 'Failure', keeping err for propagation."""
        definition = self._self_def
        if definition is not None:
            self.info("Routing message to 'Failure' output due to error",
                      "nodeId", definition.id, "nodeName", definition.name,
                      "nodeType", definition.type, "error", err)
        else:
            self.info("Routing message to 'Failure' output due to error", "error", err)
        self._pending_err = err
        self.tell_next(msg, FAILURE)

    def handle_error(self, msg: RuleMsg, err: BaseException) -> None:
        """Record the error in the message metadata, log it and route to 'Failure'."""
        if msg.metadata is None:
            msg.metadata = {}
        metadata = msg.metadata
        metadata[META_ERROR] = str(err)
        metadata[META_ERROR_TIMESTAMP] = _timestamp()
        if isinstance(err, Fault):
            metadata[META_ERROR_CODE] = str(err.code)
        definition = self._self_def
        if definition is not None:
            metadata[META_ERROR_NODE_ID] = definition.id
            metadata[META_ERROR_NODE_NAME] = definition.name
            self.error("Node execution failed",
                       "nodeId", definition.id, "nodeName", definition.name, "error", err)
        else:
            self.error("Node execution failed", "error", err)
        self.tell_failure(msg, err)

    def _finish_leaf(self, msg: RuleMsg, relation_types: tuple[str, ...]) -> None:
        if FAILURE in relation_types:
            if self._pending_err is not None:
                err = self._pending_err
                self._pending_err = None
                self._child_done(msg, err)
                return
            metadata = msg.metadata if msg is not None else None
            if metadata:
                err_msg = metadata.get(META_ERROR)
                if err_msg:
                    self._child_done(msg, RuntimeError(err_msg))
                    return
        self._child_done(msg, None)

    def tell_next(self, msg: RuleMsg, *relation_types: str) -> None:
        """Submit the message to every node connected by one of the relation types.

        When no such node exists this branch completes; for a 'Failure'
        route the pending error, or one recorded in the metadata, goes with it.
        """
        if msg is not None and msg.type == MSG_TYPE_STOP_PROPAGATION:
            self._child_done(msg, None)
            return
        if self._chain is None or self._self_def is None:
            self._child_done(msg, None)
            return

        connections = self._chain.get_connections(self._self_def.id)
        if not connections:
            self._finish_leaf(msg, relation_types)
            return

        found_next = False
        for relation_type in relation_types:
            for conn in connections:
                if conn.type != relation_type:
                    continue
                next_id = conn.to_id
                next_node = self._chain.get_node(next_id)
                if next_node is None:
                    self.warn("Target node not found in chain", "nodeId", next_id)
                    continue
                next_def = self._chain.get_node_def(next_id)
                if next_def is None:
                    self.warn("Target node definition not found in chain", "nodeId", next_id)
                    continue

                found_next = True
                self._child_ready()
                next_ctx = NodeCtx(self.context, self._runtime, self._chain, next_def,
                                   self, self._on_end, self.aspects, self._callback)
                msg_copy = msg.copy() if msg is not None else None

                def task(ctx: NodeCtx = next_ctx, node: Any = next_node,
                         message: Any = msg_copy) -> None:
                    _run_node(ctx, node, message)

                try:
                    self._runtime.scheduler.submit(task)
                except Exception as exc:
                    self._child_done(msg, exc)

        if not found_next:
            self._finish_leaf(msg, relation_types)

    def new_msg(self, msg_type: str, metadata: Mapping[str, str] | None, data: str) -> RuleMsg:
        """Create a new TEXT message with a fresh id."""
        return RuleMsg(type=msg_type, data=data, metadata=dict(metadata or {}), data_format=TEXT)

    # --- logging ---

    def _log_with_fields(self, fields: tuple[Any, ...]) -> Any:
        logger = self.logger
        if logger is None:
            logger = logs.get_logger()
        base: list[Any] = []
        if self.chain_id:
            base += ["chainId", self.chain_id]
        if self.node_id:
            base += ["nodeId", self.node_id]
        return logger.with_fields(*base, *fields)

    def debug(self, msg: str, *args: Any) -> None:
        self._log_with_fields(args).debugf(self.context, msg)

    def info(self, msg: str, *args: Any) -> None:
        self._log_with_fields(args).infof(self.context, msg)

    def warn(self, msg: str, *args: Any) -> None:
        self._log_with_fields(args).warnf(self.context, msg)

    def error(self, msg: str, *args: Any) -> None:
        self._log_with_fields(args).errorf(self.context, msg)