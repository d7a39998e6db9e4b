# store.py
import json
from pathlib import Path
from typing import List

from .constants import WORKFLOWS_DIR, logger
from .errors import FlowCrawlerError, WorkflowNotFound
from .models import Workflow
from .utils import now_iso


class FileWorkflowStore:
    """One JSON file per workflow, named after its id."""

    def __init__(self, directory: str = WORKFLOWS_DIR):
        self.directory = Path(directory)

    def path_for(self, workflow_id: str) -> Path:
        return self.directory / f"{workflow_id}.json"

    async def get(self, workflow_id: str) -> Workflow:
        path = self.path_for(workflow_id)
        if not path.exists():
            raise WorkflowNotFound(workflow_id)
        data = json.loads(path.read_text(encoding='utf-8'))
        return Workflow.from_dict(data, validate=False)

    async def save(self, workflow: Workflow) -> Workflow:
        workflow.updated_at = now_iso()
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(workflow.id)
        path.write_text(json.dumps(workflow.to_dict(), ensure_ascii=False, indent=2), encoding='utf-8')
        logger.info(f"Saved workflow {workflow.id} to {path}")
        return workflow

    async def list(self) -> List[Workflow]:
        if not self.directory.exists():
            return []
        workflows = []
        for path in sorted(self.directory.glob('*.json')):
            try:
                workflows.append(Workflow.from_dict(json.loads(path.read_text(encoding='utf-8')), validate=False))
            except (json.JSONDecodeError, FlowCrawlerError) as e:
                logger.warning(f"Skipping unreadable workflow {path.name}: {e}")
        return workflows
