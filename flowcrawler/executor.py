# executor.py
import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

from .constants import logger
from .dispatcher import NodeDispatcher
from .errors import ExecutionInProgress
from .models import (
    Node, NodeResult, RunResult, Workflow,
    STATUS_COMPLETED, STATUS_FAILED, STATUS_STOPPED,
)
from .session import BrowserSession
from .utils import now_iso

InitialContext = Union[None, Dict[str, Any], List[Dict[str, Any]]]


class RunState:
    """The in-flight flag and stop token of one executor."""

    def __init__(self):
        self.active = False
        self._stop = asyncio.Event()

    def begin(self):
        if self.active:
            raise ExecutionInProgress()
        self.active = True
        self._stop.clear()

    def request_stop(self) -> bool:
        if not self.active:
            return False
        self._stop.set()
        return True

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def finish(self):
        self.active = False


def _initial_items(initial_context: InitialContext) -> List[Dict[str, Any]]:
    if initial_context is None:
        return [{}]
    if isinstance(initial_context, list):
        return [dict(item) for item in initial_context] or [{}]
    return [dict(initial_context)]


class WorkflowExecutor:
    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 dispatcher: Optional[NodeDispatcher] = None,
                 session_factory: Callable[[Dict[str, Any]], Any] = BrowserSession):
        self.config = config or {}
        self.dispatcher = dispatcher or NodeDispatcher(continue_on_fail=self.config.get('continue_on_fail', False))
        self.session_factory = session_factory
        self.state = RunState()
        self.session = None

    @property
    def is_running(self) -> bool:
        return self.state.active

    def stop(self) -> bool:
        """Ask the active run to stop before its next node. Returns False if nothing is running."""
        requested = self.state.request_stop()
        if requested:
            logger.info("Stop requested, finishing current node")
        return requested

    async def _open_session(self, nodes: List[Node]):
        if not any(self.dispatcher.requires_browser(node) for node in nodes):
            return None
        self.session = self.session_factory(self.config)
        await self.session.initialize()
        return self.session.actions(self.config)

    async def _close_session(self):
        if self.session is not None:
            await self.session.cleanup()
            self.session = None

    async def run(self, workflow: Workflow, initial_context: InitialContext = None) -> RunResult:
        self.state.begin()
        started_at = now_iso()
        items = _initial_items(initial_context)
        results: List[NodeResult] = []
        status = STATUS_COMPLETED
        logger.info(f"Executing workflow: {workflow.name} ({len(workflow.nodes)} nodes)")

        try:
            for node in workflow.nodes:
                self.dispatcher.resolve(node)
            actions = await self._open_session(workflow.nodes)

            for node in workflow.nodes:
                if self.state.stop_requested:
                    logger.info(f"Workflow stopped before node {node.id}")
                    status = STATUS_STOPPED
                    break
                items, node_result = await self.dispatcher.dispatch(node, items, actions)
                results.append(node_result)
        except Exception as e:
            logger.error(f"Workflow execution failed: {workflow.name}: {e}")
            return RunResult(
                success=False,
                status=STATUS_FAILED,
                results=tuple(results),
                error=str(e),
                data=items,
                workflow_id=workflow.id,
                started_at=started_at,
                finished_at=now_iso(),
            )
        finally:
            await self._close_session()
            self.state.finish()

        logger.info(f"Workflow {status}: {workflow.name}")
        return RunResult(
            success=True,
            status=status,
            results=tuple(results),
            data=items,
            workflow_id=workflow.id,
            started_at=started_at,
            finished_at=now_iso(),
        )

    async def execute_node(self, node: Node, input_data: InitialContext = None):
        """Run a single node outside of a workflow; returns (items, NodeResult)."""
        self.state.begin()
        try:
            self.dispatcher.resolve(node)
            actions = await self._open_session([node])
            return await self.dispatcher.dispatch(node, _initial_items(input_data), actions)
        finally:
            await self._close_session()
            self.state.finish()
