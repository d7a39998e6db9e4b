"""
Schema-driven data extraction.

A schema maps output field names to either a selector string (text content) or
an object {"selector": ..., "attribute": ...}. Extraction is best-effort per
field: a missing element yields "" for text and None for attributes.
"""
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_TIMEOUT, MAX_ITEMS, logger
from .errors import ElementNotFound, InvalidSchema
from .utils import now_iso


def _clean(value: Any, clean_data: bool) -> Any:
    if clean_data and isinstance(value, str):
        return value.strip()
    return value


async def extract_value(root, rule: Any, clean_data: bool = True) -> Any:
    if isinstance(rule, str):
        element = await root.query_selector(rule)
        text = await element.text_content() if element is not None else None
        return _clean(text or '', clean_data)

    if isinstance(rule, dict) and rule.get('selector'):
        element = await root.query_selector(rule['selector'])
        attribute = rule.get('attribute')
        if attribute:
            if element is None:
                return None
            return _clean(await element.get_attribute(attribute), clean_data)
        text = await element.text_content() if element is not None else None
        return _clean(text or '', clean_data)

    return None


async def extract_record(root, schema: Dict[str, Any], clean_data: bool = True) -> Dict[str, Any]:
    record = {}
    for name, rule in schema.items():
        try:
            record[name] = await extract_value(root, rule, clean_data)
        except Exception as e:
            logger.debug(f"Field '{name}' could not be extracted: {e}")
            record[name] = None
    return record


async def extract_table(table, clean_data: bool = True) -> List[Dict[str, Any]]:
    rows = await table.query_selector_all('tr')
    if not rows:
        return []

    headers = []
    for cell in await rows[0].query_selector_all('th, td'):
        headers.append((await cell.text_content() or '').strip())

    records = []
    for row in rows[1:]:
        record = {}
        for index, cell in enumerate(await row.query_selector_all('td')):
            header = headers[index] if index < len(headers) and headers[index] else f"column_{index}"
            record[header] = _clean(await cell.text_content() or '', clean_data)
        records.append(record)
    return records


async def _find_root(actions, selector: str, timeout: float):
    try:
        return await actions.wait_for_element(selector, timeout)
    except ElementNotFound:
        logger.warning(f"Root element not found: {selector}")
        return None


async def collect_data(actions, collection_mode: str = 'single', root_selector: str = '',
                       data_schema: Optional[Dict[str, Any]] = None, max_items: int = MAX_ITEMS,
                       include_metadata: bool = False, clean_data: bool = True,
                       timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    data_schema = data_schema or {}
    collected: List[Dict[str, Any]] = []

    if collection_mode == 'single':
        root = await _find_root(actions, root_selector, timeout)
        if root is not None:
            collected = [await extract_record(root, data_schema, clean_data)]

    elif collection_mode == 'multiple':
        if await _find_root(actions, root_selector, timeout) is not None:
            elements = await actions.query_all(root_selector)
            for element in elements[:max_items]:
                collected.append(await extract_record(element, data_schema, clean_data))

    elif collection_mode == 'table':
        table = await _find_root(actions, root_selector, timeout)
        if table is not None:
            collected = await extract_table(table, clean_data)

    elif collection_mode == 'schema':
        page = await actions.page()
        collected = [await extract_record(page, data_schema, clean_data)]

    else:
        raise InvalidSchema(f"Unknown collection mode: {collection_mode}")

    if include_metadata:
        metadata = {
            'url': await actions.current_url(),
            'timestamp': now_iso(),
            'collectionMode': collection_mode,
        }
        collected = [{**record, '_metadata': dict(metadata)} for record in collected]

    logger.info(f"Collected {len(collected)} records ({collection_mode})")
    return {'collectedData': collected, 'totalItems': len(collected)}
