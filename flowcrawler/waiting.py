"""
Wait-until primitives shared by every caller that depends on page state.

The predicate is checked once up front; only when it is false does Playwright
install its poller, which it tears down on success, timeout and cancellation.
"""
from typing import Any, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .constants import DEFAULT_TIMEOUT, logger
from .errors import ElementNotFound, TimeoutExceeded


async def wait_for(page, predicate: str, timeout: float = DEFAULT_TIMEOUT, arg: Any = None,
                   polling: Any = 'raf') -> Any:
    """Wait until `predicate` (a page-side JS function or expression) returns a truthy value."""
    value = await page.evaluate(predicate, arg)
    if value:
        return value

    try:
        handle = await page.wait_for_function(predicate, arg=arg, polling=polling, timeout=timeout)
    except PlaywrightTimeoutError as e:
        raise TimeoutExceeded(f"Condition not met within {timeout}ms", timeout) from e
    try:
        return await handle.json_value()
    finally:
        await handle.dispose()


async def wait_for_element(scope, selector: str, timeout: Optional[float] = None):
    """Return the first element matching `selector` under `scope` (a page or element handle)."""
    timeout = DEFAULT_TIMEOUT if timeout is None else timeout
    element = await scope.query_selector(selector)
    if element is not None:
        return element

    try:
        element = await scope.wait_for_selector(selector, state='attached', timeout=timeout)
    except PlaywrightTimeoutError as e:
        logger.warning(f"Element not found: {selector} ({timeout}ms)")
        raise ElementNotFound(selector, timeout) from e
    if element is None:
        raise ElementNotFound(selector, timeout)
    logger.debug(f"Element found: {selector}")
    return element
