# database.py
import json
from typing import Any, Dict, List, Optional

from neo4j import AsyncGraphDatabase

from .constants import NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD, logger
from .errors import WorkflowNotFound
from .models import Workflow
from .utils import now_iso


class Neo4jWorkflowStore:
    """Workflows kept as (:Workflow) nodes holding their JSON definition."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.driver = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self):
        self.driver = AsyncGraphDatabase.driver(
            self.config.get('neo4j_uri', NEO4J_URI),
            auth=(self.config.get('neo4j_user', NEO4J_USER), self.config.get('neo4j_password', NEO4J_PASSWORD))
        )
        async with self.driver.session() as session:
            await session.run("CREATE INDEX workflow_id IF NOT EXISTS FOR (w:Workflow) ON (w.id)")
        logger.info("Connected to Neo4j workflow store")

    async def close(self):
        if self.driver:
            await self.driver.close()
            self.driver = None

    async def get(self, workflow_id: str) -> Workflow:
        async with self.driver.session() as session:
            result = await session.run(
                "MATCH (w:Workflow {id: $id}) RETURN w.definition AS definition",
                id=workflow_id,
            )
            record = await result.single()
        if record is None:
            raise WorkflowNotFound(workflow_id)
        return Workflow.from_dict(json.loads(record['definition']), validate=False)

    async def save(self, workflow: Workflow) -> Workflow:
        workflow.updated_at = now_iso()
        logger.info(f"Saving workflow: {workflow.id}")
        async with self.driver.session() as session:
            await session.run(
                """
                MERGE (w:Workflow {id: $id})
                SET w.name = $name,
                    w.description = $description,
                    w.definition = $definition,
                    w.updated_at = $updated_at
                """,
                id=workflow.id,
                name=workflow.name,
                description=workflow.description,
                definition=json.dumps(workflow.to_dict(), ensure_ascii=False),
                updated_at=workflow.updated_at,
            )
        return workflow

    async def list(self) -> List[Workflow]:
        async with self.driver.session() as session:
            result = await session.run("MATCH (w:Workflow) RETURN w.definition AS definition ORDER BY w.name")
            records = [record async for record in result]
        return [Workflow.from_dict(json.loads(r['definition']), validate=False) for r in records]
