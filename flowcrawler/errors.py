"""
Exception types raised by the workflow engine.

Everything derives from FlowCrawlerError so callers can catch the whole family.
"""
from typing import Optional


class FlowCrawlerError(Exception):
    """Base class for engine errors."""


class SessionNotInitialized(FlowCrawlerError):
    def __init__(self, message: str = "Browser not initialized"):
        super().__init__(message)


class PageNotFound(FlowCrawlerError):
    def __init__(self, page_id: str):
        self.page_id = page_id
        super().__init__(f"Page not found: {page_id}")


class TimeoutExceeded(FlowCrawlerError):
    def __init__(self, message: str, timeout: Optional[float] = None):
        self.timeout = timeout
        super().__init__(message)


class ElementNotFound(TimeoutExceeded):
    def __init__(self, selector: str, timeout: Optional[float] = None):
        self.selector = selector
        super().__init__(f"Element not found: {selector}", timeout)


class MissingParameter(FlowCrawlerError):
    def __init__(self, node_id: str, field: str, reason: str = ""):
        self.node_id = node_id
        self.field = field
        message = f"Node '{node_id}': parameter '{field}' is required"
        if reason:
            message += f" {reason}"
        super().__init__(message)


class UnknownNodeType(FlowCrawlerError):
    def __init__(self, node_type: str, node_id: Optional[str] = None):
        self.node_type = node_type
        self.node_id = node_id
        where = f" (node '{node_id}')" if node_id else ""
        super().__init__(f"Unknown node type: {node_type}{where}")


class ExecutionInProgress(FlowCrawlerError):
    def __init__(self, message: str = "Another workflow is executing"):
        super().__init__(message)


class InvalidSchema(FlowCrawlerError):
    pass


class ExportFailure(FlowCrawlerError):
    pass


class WorkflowNotFound(FlowCrawlerError):
    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")


class NodeExecutionError(FlowCrawlerError):
    """A handler failure surfaced to the run, carrying the node that failed."""

    def __init__(self, node_id: str, node_type: str, original: Exception):
        self.node_id = node_id
        self.node_type = node_type
        self.original = original
        super().__init__(f"Node '{node_id}' ({node_type}) failed: {original}")
