# mapper.py
import re
from typing import Any, Dict

from .constants import logger
from .utils import MISSING, get_nested_value

_INT_PREFIX = re.compile(r'^\s*([+-]?\d+)')
_FLOAT_PREFIX = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


def parse_int(value: Any):
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value)
    match = _INT_PREFIX.match(str(value))
    return int(match.group(1)) if match else None


def parse_float(value: Any):
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _FLOAT_PREFIX.match(str(value))
    return float(match.group(1)) if match else None


def _string_transform(fn):
    return lambda value: fn(value) if isinstance(value, str) else value


TRANSFORMS = {
    'toUpperCase': _string_transform(str.upper),
    'toLowerCase': _string_transform(str.lower),
    'trim': _string_transform(str.strip),
    'parseInt': parse_int,
    'parseFloat': parse_float,
}


def transform_value(value: Any, transform: str) -> Any:
    fn = TRANSFORMS.get(transform)
    if fn is None:
        logger.warning(f"Unknown transform '{transform}', value left unchanged")
        return value
    return fn(value)


def apply_mapping(input_data: Dict[str, Any], mapping_rules: Any, keep_original: bool = False) -> Dict[str, Any]:
    """Build a new record from `input_data` according to `mapping_rules`.

    A string rule is a dotted path into the input; paths that do not resolve leave
    the key out. An object rule with "source" resolves the path and applies the
    optional named "transform". Anything else is copied as a literal.
    """
    result = dict(input_data) if keep_original else {}
    if not isinstance(mapping_rules, dict):
        return result

    for key, rule in mapping_rules.items():
        if isinstance(rule, str):
            value = get_nested_value(input_data, rule)
            if value is not MISSING:
                result[key] = value
        elif isinstance(rule, dict) and rule.get('source'):
            value = get_nested_value(input_data, rule['source'])
            if value is MISSING:
                continue
            if isinstance(rule.get('transform'), str):
                value = transform_value(value, rule['transform'])
            result[key] = value
        else:
            result[key] = rule
    return result
