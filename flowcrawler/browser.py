# browser.py
import asyncio
import json
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_TIMEOUT, NAVIGATION_TIMEOUT, NAVIGATION_WAIT_UNTIL, SCRIPT_TIMEOUT, logger
from .errors import ElementNotFound, InvalidSchema, TimeoutExceeded
from .waiting import wait_for_element

# The user script becomes the body of this page-side function. It only sees
# `inputData`, which crosses the boundary as a JSON value.
SCRIPT_WRAPPER = "async (inputData) => {\n%s\n}"

SET_VALUE_JS = """(el, value) => {
    el.value = value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}"""


def coerce_result(value: Any, return_type: str) -> Any:
    if return_type == 'json':
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise InvalidSchema(f"Script result is not valid JSON: {e}") from e
        return value
    if return_type == 'string':
        if value is None:
            return 'null'
        return value if isinstance(value, str) else json.dumps(value)
    if return_type == 'number':
        if isinstance(value, bool):
            return int(value)
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return int(number) if number.is_integer() else number
    return value


async def _run_with_timeout(awaitable, timeout: float):
    try:
        return await asyncio.wait_for(awaitable, timeout / 1000)
    except asyncio.TimeoutError as e:
        raise TimeoutExceeded(f"Script did not finish within {timeout}ms", timeout) from e


async def evaluate_expression(page, script: str, timeout: float = SCRIPT_TIMEOUT) -> Any:
    """Evaluate `script` as a page expression (e.g. `document.title`) and return its value."""
    if not isinstance(script, str) or not script.strip():
        raise InvalidSchema("Script must be a non-empty string")
    result = await _run_with_timeout(page.evaluate(script), timeout)
    logger.debug("Evaluated page expression")
    return result


async def evaluate_script(page, script: str, input_data: Any = None, timeout: float = SCRIPT_TIMEOUT,
                          return_type: str = 'auto') -> Any:
    """Run an untrusted script body in the page and return its JSON-serializable result."""
    if not isinstance(script, str) or not script.strip():
        raise InvalidSchema("Script must be a non-empty string")
    # round-trip so only plain JSON reaches the page
    payload = json.loads(json.dumps(input_data, default=str)) if input_data is not None else None
    result = await _run_with_timeout(page.evaluate(SCRIPT_WRAPPER % script, payload), timeout)
    logger.debug("Executed page script")
    return coerce_result(result, return_type)


class PageActions:
    """Browser operations used by node handlers.

    The page is looked up through the session on every call, so a handler never
    holds on to a page that has since been closed.
    """

    def __init__(self, session, config: Optional[Dict[str, Any]] = None):
        self.session = session
        self.config = config or {}

    async def page(self):
        return await self.session.get_current_page()

    async def navigate(self, url: str, wait_until: Optional[str] = None, timeout: Optional[float] = None):
        page = await self.page()
        logger.info(f"Navigating to: {url}")
        await page.goto(
            url,
            wait_until=wait_until or self.config.get('wait_until', NAVIGATION_WAIT_UNTIL),
            timeout=timeout or self.config.get('navigation_timeout', NAVIGATION_TIMEOUT),
        )
        logger.info(f"Navigation completed: {url}")

    async def wait_for_element(self, selector: str, timeout: float = DEFAULT_TIMEOUT):
        return await wait_for_element(await self.page(), selector, timeout)

    async def element_exists(self, selector: str, timeout: float = DEFAULT_TIMEOUT) -> bool:
        try:
            await self.wait_for_element(selector, timeout)
        except ElementNotFound:
            logger.debug(f"Element does not exist: {selector}")
            return False
        return True

    async def click(self, selector: str):
        element = await self.wait_for_element(selector)
        await element.click()
        logger.debug(f"Clicked element: {selector}")

    async def type_text(self, selector: str, text: str):
        element = await self.wait_for_element(selector)
        await element.evaluate(SET_VALUE_JS, text)
        logger.debug(f"Typed text into: {selector}")

    async def get_text(self, selector: str) -> str:
        element = await self.wait_for_element(selector)
        text = await element.text_content()
        return (text or '').strip()

    async def query(self, selector: str):
        page = await self.page()
        return await page.query_selector(selector)

    async def query_all(self, selector: str) -> List[Any]:
        page = await self.page()
        elements = await page.query_selector_all(selector)
        logger.debug(f"Found {len(elements)} elements: {selector}")
        return elements

    async def evaluate(self, script: str, input_data: Any = None, timeout: float = SCRIPT_TIMEOUT,
                       return_type: str = 'auto') -> Any:
        return await evaluate_script(await self.page(), script, input_data, timeout, return_type)

    async def evaluate_expression(self, script: str, timeout: float = SCRIPT_TIMEOUT) -> Any:
        return await evaluate_expression(await self.page(), script, timeout)

    async def screenshot(self, selector: Optional[str] = None, **options) -> bytes:
        if selector:
            element = await self.wait_for_element(selector)
            return await element.screenshot(**options)
        page = await self.page()
        return await page.screenshot(**options)

    async def current_url(self) -> str:
        page = await self.page()
        return page.url

