"""
CLIエントリポイントのテスト
"""
import json
import os
import sys
from unittest.mock import AsyncMock, patch

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import main
from flowcrawler.errors import WorkflowNotFound
from flowcrawler.store import FileWorkflowStore


class TestCli:

    @pytest.mark.asyncio
    async def test_create_then_list(self, tmp_path, capsys):
        workflows = str(tmp_path / 'wf')
        with patch.object(sys, 'argv', ['main.py', '--workflows-dir', workflows, 'create', 'demo']):
            assert await main.main() == 0
        with patch.object(sys, 'argv', ['main.py', '--workflows-dir', workflows, 'list']):
            assert await main.main() == 0

        out = capsys.readouterr().out
        assert 'Workflow created: demo' in out
        assert 'demo (demo)' in out
        saved = json.loads((tmp_path / 'wf' / 'demo.json').read_text(encoding='utf-8'))
        assert saved['nodes'][0]['data']['url'] == 'https://example.com'

    @pytest.mark.asyncio
    async def test_execute_mapper_workflow(self, tmp_path):
        flow = tmp_path / 'flow.json'
        output = tmp_path / 'result.json'
        flow.write_text(json.dumps({
            'id': 'flow',
            'nodes': [{'id': '1', 'type': 'dataMapper', 'data': {'mappingRules': {'b': 'a'}}}],
        }), encoding='utf-8')

        argv = ['main.py', 'execute', str(flow), '-d', '{"a": 3}', '-o', str(output)]
        with patch.object(sys, 'argv', argv):
            assert await main.main() == 0
        result = json.loads(output.read_text(encoding='utf-8'))
        assert result['data'][0]['mappedData'] == {'b': 3}

    @pytest.mark.asyncio
    async def test_execute_bad_data(self, tmp_path):
        flow = tmp_path / 'flow.json'
        flow.write_text(json.dumps({'id': 'flow', 'nodes': []}), encoding='utf-8')
        with patch.object(sys, 'argv', ['main.py', 'execute', str(flow), '-d', '{oops']):
            assert await main.main() == 1

    @pytest.mark.asyncio
    async def test_execute_unknown_workflow(self, tmp_path):
        argv = ['main.py', '--workflows-dir', str(tmp_path), 'execute', 'ghost']
        with patch.object(sys, 'argv', argv):
            assert await main.main() == 1

    @pytest.mark.asyncio
    async def test_list_from_neo4j(self, capsys):
        with patch('main.Neo4jWorkflowStore') as store_cls:
            store = store_cls.return_value
            store.connect = AsyncMock()
            store.close = AsyncMock()
            store.list = AsyncMock(return_value=[])
            with patch.object(sys, 'argv', ['main.py', '--neo4j', 'list']):
                assert await main.main() == 0

        store.connect.assert_awaited_once()
        store.close.assert_awaited_once()
        assert 'No workflows found' in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_resolve_from_store(self, tmp_path):
        store = FileWorkflowStore(str(tmp_path))
        with pytest.raises(WorkflowNotFound):
            await main.resolve_workflow(store, 'missing-id')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
