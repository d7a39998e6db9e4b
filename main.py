#!/usr/bin/env python3
"""
flowcrawler: browser automation workflow engine
Entry point
"""
import asyncio
import argparse
import json
import logging
import os
import sys

from flowcrawler.config import build_config
from flowcrawler.constants import WORKFLOWS_DIR
from flowcrawler.database import Neo4jWorkflowStore
from flowcrawler.errors import FlowCrawlerError
from flowcrawler.executor import WorkflowExecutor
from flowcrawler.models import Node, Workflow, load_workflow
from flowcrawler.store import FileWorkflowStore
from flowcrawler.utils import json_default

logger = logging.getLogger(__name__)


async def resolve_workflow(store, ref: str) -> Workflow:
    if os.path.exists(ref):
        return load_workflow(ref)
    if os.path.exists(f"{ref}.json"):
        return load_workflow(f"{ref}.json")
    return await store.get(ref)


async def execute_command(args, config, store) -> int:
    workflow = await resolve_workflow(store, args.workflow)

    data = None
    if args.data:
        try:
            data = json.loads(args.data)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON data: {e}")
            return 1

    executor = WorkflowExecutor(config)
    result = await executor.run(workflow, data)

    output = json.dumps(result.to_dict(), ensure_ascii=False, indent=2, default=json_default)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(output)
        logger.info(f"Run result written to {args.output}")
    if args.verbose:
        print(output)

    if result.success:
        logger.info(f"Workflow {result.status}: {workflow.name} ({len(result.results)} nodes)")
        return 0
    logger.error(f"Workflow execution failed: {result.error}")
    return 1


async def create_command(args, config, store) -> int:
    workflow = Workflow(
        id=args.name,
        name=args.name,
        description=f"Workflow: {args.name}",
        nodes=[Node.from_dict({
            'id': '1',
            'type': 'browserAction',
            'data': {'label': 'Start', 'action': 'navigate', 'url': args.url},
        })],
    )
    await store.save(workflow)
    print(f"Workflow created: {args.name}")
    if isinstance(store, FileWorkflowStore):
        print(f"Location: {store.path_for(workflow.id)}")
    return 0


async def list_command(args, config, store) -> int:
    workflows = await store.list()
    if not workflows:
        print("No workflows found. Create one with: python main.py create <name>")
        return 0
    print(f"Found {len(workflows)} workflow(s)")
    for workflow in workflows:
        print(f"  {workflow.name} ({workflow.id})")
        if workflow.description:
            print(f"    {workflow.description}")
    return 0


async def main() -> int:
    parser = argparse.ArgumentParser(description='Browser automation workflow engine')
    parser.add_argument('--workflows-dir', default=None, help=f'Workflow directory (default: {WORKFLOWS_DIR})')
    parser.add_argument('--config', help='YAML config file')
    parser.add_argument('--neo4j', action='store_true', help='Keep workflows in Neo4j instead of files')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    subparsers = parser.add_subparsers(dest='command', required=True)

    execute = subparsers.add_parser('execute', help='Execute a workflow')
    execute.add_argument('workflow', help='Workflow file or ID')
    execute.add_argument('-d', '--data', help='Input data (JSON)')
    execute.add_argument('--headful', action='store_true', default=None, help='Show browser')
    execute.add_argument('--continue-on-fail', action='store_true', default=None,
                         help='Record node errors and keep going')
    execute.add_argument('-o', '--output', help='Write the run result as JSON')

    create = subparsers.add_parser('create', help='Create a new workflow')
    create.add_argument('name', help='Workflow name')
    create.add_argument('--url', default='https://example.com', help='URL of the first navigate step')

    subparsers.add_parser('list', help='List available workflows')

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format='%(asctime)s %(levelname)-5s %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

    config = build_config(
        args.config,
        workflows_dir=args.workflows_dir,
        headful=getattr(args, 'headful', None),
        continue_on_fail=getattr(args, 'continue_on_fail', None),
    )

    commands = {'execute': execute_command, 'create': create_command, 'list': list_command}
    store = Neo4jWorkflowStore(config) if args.neo4j else FileWorkflowStore(config['workflows_dir'])
    try:
        if args.neo4j:
            await store.connect()
        return await commands[args.command](args, config, store)
    except FlowCrawlerError as e:
        logger.error(str(e))
        return 1
    finally:
        if args.neo4j:
            await store.close()


def run():
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
