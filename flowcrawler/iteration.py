# iteration.py
import asyncio
from typing import Any, Dict, Optional

from .constants import MAX_ELEMENTS, logger
from .errors import InvalidSchema
from .extraction import extract_record


async def _apply_action(element, index: int, action: str, attribute_name: Optional[str],
                        data_rules: Optional[Dict[str, Any]]) -> Any:
    if action == 'getText':
        return (await element.text_content() or '').strip()
    if action == 'getAttribute':
        if not attribute_name:
            raise InvalidSchema("Attribute name is required")
        return await element.get_attribute(attribute_name)
    if action == 'getHTML':
        return await element.inner_html()
    if action == 'clickAll':
        await element.click()
        return {'clicked': True, 'index': index}
    if action == 'getData':
        return await extract_record(element, data_rules or {}, clean_data=True)
    raise InvalidSchema(f"Unknown action: {action}")


async def loop_elements(actions, selector: str, action: str = 'getText', max_elements: int = MAX_ELEMENTS,
                        wait_time: float = 0, attribute_name: Optional[str] = None,
                        data_rules: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Apply one action to every element matching `selector`, isolating per-element failures."""
    elements = await actions.query_all(selector)
    to_process = elements[:max_elements]

    results = []
    for index, element in enumerate(to_process):
        try:
            data = await _apply_action(element, index, action, attribute_name, data_rules)
            results.append({'index': index, 'data': data})
        except Exception as e:
            logger.warning(f"Element {index} of '{selector}' failed: {e}")
            results.append({'index': index, 'error': str(e)})

        if wait_time > 0 and index < len(to_process) - 1:
            await asyncio.sleep(wait_time / 1000)

    return {
        'loopResults': results,
        'totalElements': len(elements),
        'processedElements': len(to_process),
        'selector': selector,
        'action': action,
    }
