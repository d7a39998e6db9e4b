from .executor import WorkflowExecutor
from .models import Workflow, Node, RunResult, NodeResult, load_workflow
from .session import BrowserSession

__version__ = "1.0.0"
