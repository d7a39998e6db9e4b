"""
Request/response messaging for running the engine behind a message channel.

Every request is a dict {"type": ..., "data": ...} (plus an optional "id" that is
echoed back) and gets exactly one response dict.
"""
import asyncio
from typing import Any, Dict

from .constants import logger
from .executor import WorkflowExecutor
from .models import Node, Workflow


class MessageRouter:
    def __init__(self, executor: WorkflowExecutor, store=None):
        self.executor = executor
        self.store = store
        self.handlers = {
            'GET_WORKFLOWS': self.get_workflows,
            'GET_WORKFLOW': self.get_workflow,
            'SAVE_WORKFLOW': self.save_workflow,
            'EXECUTE_WORKFLOW': self.execute_workflow,
            'STOP_WORKFLOW': self.stop_workflow,
            'EXECUTE_NODE': self.execute_node,
        }

    async def handle(self, message: Any) -> Dict[str, Any]:
        msg_type = message.get('type') if isinstance(message, dict) else None
        handler = self.handlers.get(msg_type)
        if handler is None:
            response = {'success': False, 'error': f"Unknown message type: {msg_type}"}
        else:
            try:
                response = await handler((message.get('data') or {}))
            except Exception as e:
                logger.error(f"{msg_type} failed: {e}")
                response = {'success': False, 'error': str(e)}
        if isinstance(message, dict) and 'id' in message:
            response['id'] = message['id']
        return response

    def _require_store(self):
        if self.store is None:
            raise RuntimeError("No workflow store configured")
        return self.store

    async def get_workflows(self, data) -> Dict[str, Any]:
        workflows = await self._require_store().list()
        return {'success': True, 'workflows': [w.to_dict() for w in workflows]}

    async def get_workflow(self, data) -> Dict[str, Any]:
        workflow = await self._require_store().get(data['id'])
        return {'success': True, 'workflow': workflow.to_dict()}

    async def save_workflow(self, data) -> Dict[str, Any]:
        workflow = await self._require_store().save(Workflow.from_dict(data))
        return {'success': True, 'workflow': workflow.to_dict()}

    async def execute_workflow(self, data) -> Dict[str, Any]:
        if 'nodes' in data:
            workflow = Workflow.from_dict(data)
            input_data = None
        elif 'workflow' in data:
            workflow = Workflow.from_dict(data['workflow'])
            input_data = data.get('input')
        else:
            workflow = await self._require_store().get(data['workflowId'])
            input_data = data.get('input')

        result = await self.executor.run(workflow, input_data)
        response = result.to_dict()
        if result.success:
            response['message'] = f"Workflow {result.status}"
        return response

    async def stop_workflow(self, data) -> Dict[str, Any]:
        if not self.executor.stop():
            return {'success': False, 'error': 'No workflow is executing'}
        return {'success': True, 'message': 'Workflow stopped'}

    async def execute_node(self, data) -> Dict[str, Any]:
        node = Node.from_dict(data['node'])
        items, node_result = await self.executor.execute_node(node, data.get('inputData'))
        return {'success': node_result.success, 'result': node_result.to_dict(), 'data': items}


async def serve(router: MessageRouter, inbox: asyncio.Queue, outbox: asyncio.Queue):
    """Answer requests from `inbox` on `outbox` until a None message arrives.

    Each request runs in its own task so a STOP_WORKFLOW can be answered while a
    run is still in flight.
    """
    pending = set()

    async def respond(message):
        await outbox.put(await router.handle(message))

    while True:
        message = await inbox.get()
        if message is None:
            break
        task = asyncio.create_task(respond(message))
        pending.add(task)
        task.add_done_callback(pending.discard)

    if pending:
        await asyncio.gather(*pending)
    logger.debug("Message channel closed")
