# dispatcher.py
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from . import handlers
from .constants import logger
from .errors import NodeExecutionError, UnknownNodeType
from .models import NODE_CONFIGS, Node, NodeResult

Handler = Callable[[Any, Dict[str, Any], Any], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class NodeHandler:
    handler: Handler
    config_cls: Optional[type] = None
    requires_browser: bool = True
    # merged into an item's error record when the handler fails
    failure_fields: Dict[str, Any] = field(default_factory=dict)


def default_handlers() -> Dict[str, NodeHandler]:
    return {
        'browserAction': NodeHandler(handlers.browser_action, NODE_CONFIGS['browserAction']),
        'elementExists': NodeHandler(handlers.element_exists, NODE_CONFIGS['elementExists'],
                                     failure_fields={'elementExists': False}),
        'executeJavaScript': NodeHandler(handlers.execute_javascript, NODE_CONFIGS['executeJavaScript']),
        'screenshot': NodeHandler(handlers.screenshot, NODE_CONFIGS['screenshot']),
        'dataCollector': NodeHandler(handlers.data_collector, NODE_CONFIGS['dataCollector']),
        'loopElements': NodeHandler(handlers.loop_elements_handler, NODE_CONFIGS['loopElements']),
        'dataMapper': NodeHandler(handlers.data_mapper, NODE_CONFIGS['dataMapper'], requires_browser=False,
                                  failure_fields={'mappingError': True}),
        'exportData': NodeHandler(handlers.export_data_handler, NODE_CONFIGS['exportData'], requires_browser=False,
                                  failure_fields={'exportResult': {'success': False}}),
    }


class NodeDispatcher:
    """Maps node types to handlers and runs a node over the current batch of items."""

    def __init__(self, registry: Optional[Dict[str, NodeHandler]] = None, continue_on_fail: bool = False):
        self.registry = registry if registry is not None else default_handlers()
        self.continue_on_fail = continue_on_fail

    def register(self, node_type: str, handler: Handler, config_cls: Optional[type] = None,
                 requires_browser: bool = True, failure_fields: Optional[Dict[str, Any]] = None):
        self.registry[node_type] = NodeHandler(handler, config_cls, requires_browser, failure_fields or {})

    def resolve(self, node: Node) -> NodeHandler:
        entry = self.registry.get(node.type)
        if entry is None:
            raise UnknownNodeType(node.type, node.id)
        return entry

    def requires_browser(self, node: Node) -> bool:
        return self.resolve(node).requires_browser

    async def dispatch(self, node: Node, items: List[Dict[str, Any]], actions) -> Tuple[List[Dict[str, Any]], NodeResult]:
        entry = self.resolve(node)
        config = node.config
        if config is None and entry.config_cls is not None:
            config = entry.config_cls()

        logger.debug(f"Executing node: {node.id} ({node.type})")
        validation_error = None
        try:
            if config is not None and hasattr(config, 'validate'):
                config.validate(node.id)
        except Exception as e:
            validation_error = e

        new_items: List[Dict[str, Any]] = []
        outputs: List[Dict[str, Any]] = []
        errors: List[str] = []
        for index, item in enumerate(items):
            try:
                if validation_error is not None:
                    raise validation_error
                output = await entry.handler(config, item, actions)
            except Exception as e:
                if not self.continue_on_fail:
                    logger.error(f"Node execution failed: {node.id} ({node.type}): {e}")
                    raise NodeExecutionError(node.id, node.type, e) from e
                logger.warning(f"Node {node.id} failed on item {index}, continuing: {e}")
                output = {'error': str(e), **entry.failure_fields}
                errors.append(str(e))
            outputs.append(output)
            new_items.append({**item, **output})

        logger.debug(f"Node completed: {node.id}")
        result = NodeResult(
            node_id=node.id,
            node_type=node.type,
            success=not errors,
            data=outputs,
            error=errors[0] if errors else None,
        )
        return new_items, result
