"""
Node handlers.

Every handler takes (config, item, actions) and returns the partial record that
gets merged into the item. `actions` is the run's PageActions, or None when the
run never needed a browser.
"""
from typing import Any, Dict

from .capture import capture
from .errors import ExportFailure
from .exporter import export_data
from .extraction import collect_data
from .iteration import loop_elements
from .mapper import apply_mapping
from .models import (
    BrowserActionConfig, ElementExistsConfig, ExecuteJavaScriptConfig, ScreenshotConfig,
    DataCollectorConfig, LoopElementsConfig, DataMapperConfig, ExportDataConfig,
)
from .utils import MISSING, get_nested_value


async def browser_action(config: BrowserActionConfig, item: Dict[str, Any], actions) -> Dict[str, Any]:
    action = config.action

    if action == 'navigate':
        await actions.navigate(config.url)
        result = {'url': config.url, 'action': action}
    elif action == 'click':
        await actions.click(config.selector)
        result = {'selector': config.selector, 'action': action}
    elif action == 'type':
        await actions.type_text(config.selector, config.text)
        result = {'selector': config.selector, 'text': config.text, 'action': action}
    elif action == 'waitForElement':
        await actions.wait_for_element(config.selector, config.timeout)
        result = {'selector': config.selector, 'timeout': config.timeout, 'found': True, 'action': action}
    elif action == 'getText':
        text = await actions.get_text(config.selector)
        result = {'selector': config.selector, 'text': text, 'action': action}
    elif action == 'executeScript':
        value = await actions.evaluate_expression(config.script)
        result = {'script': config.script, 'result': value, 'action': action}
    else:  # screenshot
        shot = await capture(actions, screenshot_type='fullPage' if config.full_page else 'viewport')
        result = {'screenshot': shot['screenshot'], 'fullPage': config.full_page, 'action': action}

    return {'browserResult': result}


async def element_exists(config: ElementExistsConfig, item: Dict[str, Any], actions) -> Dict[str, Any]:
    exists = await actions.element_exists(config.selector, config.timeout)
    return {
        'elementExists': not exists if config.invert else exists,
        'selector': config.selector,
        'timeout': config.timeout,
    }


async def execute_javascript(config: ExecuteJavaScriptConfig, item: Dict[str, Any], actions) -> Dict[str, Any]:
    input_data = item if config.pass_input_data else None
    result = await actions.evaluate(config.js_code, input_data, config.timeout, config.return_type)
    return {'scriptResult': result}


async def screenshot(config: ScreenshotConfig, item: Dict[str, Any], actions) -> Dict[str, Any]:
    return await capture(
        actions,
        screenshot_type=config.screenshot_type,
        selector=config.selector,
        format=config.format,
        quality=config.quality,
        output_mode=config.output_mode,
        file_name=config.file_name,
        omit_background=config.omit_background,
        path=config.path,
    )


async def data_collector(config: DataCollectorConfig, item: Dict[str, Any], actions) -> Dict[str, Any]:
    return await collect_data(
        actions,
        collection_mode=config.collection_mode,
        root_selector=config.root_selector,
        data_schema=config.data_schema,
        max_items=config.max_items,
        include_metadata=config.include_metadata,
        clean_data=config.clean_data,
    )


async def loop_elements_handler(config: LoopElementsConfig, item: Dict[str, Any], actions) -> Dict[str, Any]:
    return await loop_elements(
        actions,
        config.selector,
        action=config.action,
        max_elements=config.max_elements,
        wait_time=config.wait_time,
        attribute_name=config.attribute_name,
        data_rules=config.data_rules,
    )


async def data_mapper(config: DataMapperConfig, item: Dict[str, Any], actions) -> Dict[str, Any]:
    """Nest the mapped record under `mappedData`; the item itself is left intact.

    `keepOriginal` copies the item's fields into `mappedData` before the rules
    run, so it only affects the mapped record.
    """
    return {'mappedData': apply_mapping(item, config.mapping_rules, config.keep_original)}


async def export_data_handler(config: ExportDataConfig, item: Dict[str, Any], actions) -> Dict[str, Any]:
    if config.data_field:
        data = get_nested_value(item, config.data_field)
        if data is MISSING or data is None:
            raise ExportFailure(f'Field "{config.data_field}" not found in input data')
    else:
        data = item

    result = export_data(
        data,
        config.file_path,
        format=config.format,
        pretty_print=config.pretty_print,
        csv_delimiter=config.csv_delimiter,
        include_headers=config.include_headers,
        append_mode=config.append_mode,
        create_directory=config.create_directory,
    )
    return {'exportResult': result}
