# capture.py
import base64
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image

from .constants import logger

MIME_TYPES = {'png': 'image/png', 'jpeg': 'image/jpeg', 'webp': 'image/webp'}


def to_webp(buffer: bytes, quality: int) -> bytes:
    # Chromium screenshots only come out as png or jpeg
    with Image.open(BytesIO(buffer)) as image:
        out = BytesIO()
        image.save(out, format='WEBP', quality=quality)
        return out.getvalue()


def screenshot_options(format: str, quality: int, omit_background: bool) -> Dict[str, Any]:
    options: Dict[str, Any] = {'type': 'jpeg' if format == 'jpeg' else 'png'}
    if format == 'png':
        options['omit_background'] = omit_background
    elif format == 'jpeg':
        options['quality'] = quality
    return options


async def capture(actions, screenshot_type: str = 'fullPage', selector: Optional[str] = None,
                  format: str = 'png', quality: int = 80, output_mode: str = 'base64',
                  file_name: str = 'screenshot.png', omit_background: bool = False,
                  path: Optional[str] = None) -> Dict[str, Any]:
    options = screenshot_options(format, quality, omit_background)

    if screenshot_type == 'element':
        buffer = await actions.screenshot(selector=selector, **options)
    else:
        buffer = await actions.screenshot(full_page=screenshot_type == 'fullPage', **options)

    if format == 'webp':
        buffer = to_webp(buffer, quality)

    mime_type = MIME_TYPES[format]
    result: Dict[str, Any] = {
        'fileName': file_name,
        'format': format,
        'screenshotType': screenshot_type,
        'size': len(buffer),
        'mimeType': mime_type,
    }

    if output_mode == 'binary':
        result['binary'] = {'data': buffer, 'mimeType': mime_type, 'fileName': file_name}
    else:
        encoded = base64.b64encode(buffer).decode('ascii')
        result['screenshot'] = f"data:{mime_type};base64,{encoded}" if output_mode == 'dataUrl' else encoded

    if path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(buffer)
        result['path'] = str(target)

    logger.debug(f"Took {screenshot_type} screenshot ({format}, {len(buffer)} bytes)")
    return result
