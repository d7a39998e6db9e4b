# exporter.py
import json
import os
from typing import Any, Dict, List

from .constants import logger
from .errors import ExportFailure, InvalidSchema
from .utils import json_default


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (bytes, bytearray)):
        return json_default(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(',', ':'), default=json_default)
    return str(value)


def escape_csv_value(value: Any, delimiter: str) -> str:
    if value is None:
        return ''
    text = _format_scalar(value)
    if delimiter in text or '"' in text or '\n' in text or '\r' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def to_csv(data: List[Any], delimiter: str = ',', include_headers: bool = True) -> str:
    if not data:
        return ''

    headers: List[str] = []
    for item in data:
        for key in (item if isinstance(item, dict) else {}):
            if key not in headers:
                headers.append(key)

    lines = []
    if include_headers:
        lines.append(delimiter.join(escape_csv_value(h, delimiter) for h in headers))
    for item in data:
        row = item if isinstance(item, dict) else {}
        lines.append(delimiter.join(escape_csv_value(row.get(h), delimiter) for h in headers))
    return '\n'.join(lines)


def render(data: Any, format: str = 'json', pretty_print: bool = True, csv_delimiter: str = ',',
           include_headers: bool = True) -> str:
    data_array = data if isinstance(data, list) else [data]

    if format == 'json':
        if pretty_print:
            return json.dumps(data, ensure_ascii=False, indent=2, default=json_default)
        return json.dumps(data, ensure_ascii=False, separators=(',', ':'), default=json_default)
    if format == 'jsonl':
        lines = (json.dumps(item, ensure_ascii=False, separators=(',', ':'), default=json_default) for item in data_array)
        return '\n'.join(lines)
    if format == 'csv':
        return to_csv(data_array, csv_delimiter, include_headers)
    if format == 'txt':
        return data if isinstance(data, str) else json.dumps(data, ensure_ascii=False, indent=2, default=json_default)
    raise InvalidSchema(f"Unknown format: {format}")


def export_data(data: Any, file_path: str, format: str = 'json', pretty_print: bool = True,
                csv_delimiter: str = ',', include_headers: bool = True, append_mode: bool = False,
                create_directory: bool = True) -> Dict[str, Any]:
    """Serialize `data` and write it to `file_path`; returns bytes written and record count."""
    data_array = data if isinstance(data, list) else [data]
    try:
        content = render(data, format, pretty_print, csv_delimiter, include_headers)
    except (TypeError, ValueError) as e:
        raise ExportFailure(f"Cannot serialize data as {format}: {e}") from e

    try:
        if create_directory:
            directory = os.path.dirname(file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
        if append_mode:
            with open(file_path, 'a', encoding='utf-8', newline='') as f:
                f.write(content + '\n')
        else:
            with open(file_path, 'w', encoding='utf-8', newline='') as f:
                f.write(content)
        size = os.stat(file_path).st_size
    except OSError as e:
        raise ExportFailure(f"Failed to write {file_path}: {e}") from e

    logger.info(f"Exported {len(data_array)} items to {file_path} ({format}, {size} bytes)")
    return {
        'success': True,
        'filePath': file_path,
        'format': format,
        'size': size,
        'itemsExported': len(data_array),
        'appendMode': append_mode,
    }
