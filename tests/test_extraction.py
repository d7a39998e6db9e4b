"""
スキーマ駆動のデータ抽出テスト
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flowcrawler.errors import InvalidSchema
from flowcrawler.extraction import collect_data, extract_record, extract_table, extract_value
from fakes import FakeElement


def make_table(header_cells, rows):
    header = FakeElement(children={'th, td': [FakeElement(text) for text in header_cells]})
    body = [FakeElement(children={'td': [FakeElement(text) for text in row]}) for row in rows]
    return FakeElement(children={'tr': [header] + body})


class TestExtractValue:

    @pytest.mark.asyncio
    async def test_text_rule(self):
        root = FakeElement(children={'.name': [FakeElement('  Hi  ')]})
        assert await extract_value(root, '.name') == 'Hi'
        assert await extract_value(root, '.name', clean_data=False) == '  Hi  '

    @pytest.mark.asyncio
    async def test_missing_text_is_empty(self):
        assert await extract_value(FakeElement(), '.missing') == ''

    @pytest.mark.asyncio
    async def test_attribute_rule(self):
        root = FakeElement(children={'a': [FakeElement('Link', attrs={'href': '/x'})]})
        assert await extract_value(root, {'selector': 'a', 'attribute': 'href'}) == '/x'
        assert await extract_value(root, {'selector': 'a'}) == 'Link'

    @pytest.mark.asyncio
    async def test_missing_attribute_element_is_none(self):
        assert await extract_value(FakeElement(), {'selector': 'a', 'attribute': 'href'}) is None

    @pytest.mark.asyncio
    async def test_unsupported_rule(self):
        assert await extract_value(FakeElement(), 42) is None


class TestExtractRecord:

    @pytest.mark.asyncio
    async def test_failing_field_becomes_none(self):
        root = FakeElement(children={
            '.ok': [FakeElement('fine')],
            '.broken': [FakeElement(fail=RuntimeError("detached"))],
        })
        record = await extract_record(root, {'ok': '.ok', 'broken': '.broken'})
        assert record == {'ok': 'fine', 'broken': None}


class TestExtractTable:

    @pytest.mark.asyncio
    async def test_headers_and_fallback_columns(self):
        table = make_table(['Name', ''], [['Alice', '30', 'extra'], ['Bob', '25']])
        records = await extract_table(table)
        assert records == [
            {'Name': 'Alice', 'column_1': '30', 'column_2': 'extra'},
            {'Name': 'Bob', 'column_1': '25'},
        ]

    @pytest.mark.asyncio
    async def test_empty_table(self):
        assert await extract_table(FakeElement()) == []


class TestCollectData:

    @pytest.mark.asyncio
    async def test_single(self, actions, page, item_elements):
        page.children['.item'] = item_elements
        result = await collect_data(actions, 'single', '.item', {'title': '.title', 'price': '.price'})
        assert result == {'collectedData': [{'title': 'Title 0', 'price': '0'}], 'totalItems': 1}

    @pytest.mark.asyncio
    async def test_single_raw(self, actions, page, item_elements):
        page.children['.item'] = item_elements
        result = await collect_data(actions, 'single', '.item', {'title': '.title'}, clean_data=False)
        assert result['collectedData'][0]['title'] == '  Title 0  '

    @pytest.mark.asyncio
    async def test_multiple_respects_max_items(self, actions, page, item_elements):
        page.children['.item'] = item_elements
        result = await collect_data(actions, 'multiple', '.item', {'price': '.price'}, max_items=3)
        assert result['totalItems'] == 3
        assert [r['price'] for r in result['collectedData']] == ['0', '10', '20']

    @pytest.mark.asyncio
    async def test_missing_root_yields_nothing(self, actions):
        for mode in ('single', 'multiple', 'table'):
            result = await collect_data(actions, mode, '.absent', {'a': '.a'}, timeout=10)
            assert result == {'collectedData': [], 'totalItems': 0}

    @pytest.mark.asyncio
    async def test_table(self, actions, page):
        page.children['table'] = [make_table(['A', 'B'], [['1', '2']])]
        result = await collect_data(actions, 'table', 'table')
        assert result['collectedData'] == [{'A': '1', 'B': '2'}]

    @pytest.mark.asyncio
    async def test_schema_mode_uses_page(self, actions, page):
        page.children['h1'] = [FakeElement(' Heading ')]
        result = await collect_data(actions, 'schema', data_schema={'heading': 'h1', 'missing': '.x'})
        assert result['collectedData'] == [{'heading': 'Heading', 'missing': ''}]

    @pytest.mark.asyncio
    async def test_metadata(self, actions, page, item_elements):
        page.children['.item'] = item_elements
        result = await collect_data(actions, 'multiple', '.item', {'price': '.price'}, max_items=2,
                                    include_metadata=True)
        for record in result['collectedData']:
            metadata = record['_metadata']
            assert metadata['url'] == 'https://example.com/list'
            assert metadata['collectionMode'] == 'multiple'
            assert metadata['timestamp']

    @pytest.mark.asyncio
    async def test_unknown_mode(self, actions):
        with pytest.raises(InvalidSchema):
            await collect_data(actions, 'everything', '.item')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
