# models.py
import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .constants import DEFAULT_TIMEOUT, SCRIPT_TIMEOUT, MAX_ITEMS, MAX_ELEMENTS
from .errors import InvalidSchema, MissingParameter, UnknownNodeType
from .utils import now_iso

BROWSER_ACTIONS = ('navigate', 'click', 'type', 'getText', 'waitForElement', 'executeScript', 'screenshot')
SCREENSHOT_TYPES = ('fullPage', 'viewport', 'element')
IMAGE_FORMATS = ('png', 'jpeg', 'webp')
OUTPUT_MODES = ('base64', 'dataUrl', 'binary')
COLLECTION_MODES = ('single', 'multiple', 'table', 'schema')
LOOP_ACTIONS = ('getText', 'getAttribute', 'getHTML', 'clickAll', 'getData')
RETURN_TYPES = ('auto', 'json', 'string', 'number')
EXPORT_FORMATS = ('json', 'jsonl', 'csv', 'txt')
CSV_DELIMITERS = (',', ';', '\t', '|')

STATUS_COMPLETED = 'completed'
STATUS_FAILED = 'failed'
STATUS_STOPPED = 'stopped'


def key(name: str, default: Any = None, *, json_object: bool = False, factory=None):
    """Declare a config field read from the camelCase `name` in a node's data blob."""
    metadata = {'key': name, 'json_object': json_object}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def parse_json_object(value: Any, name: str, node_id: str = '') -> Dict[str, Any]:
    if value is None or value == '':
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise InvalidSchema(f"Node '{node_id}': {name} is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise InvalidSchema(f"Node '{node_id}': {name} must be a JSON object")
    return value


def _require_choice(node_id: str, name: str, value: Any, choices: Tuple) -> None:
    if value not in choices:
        raise InvalidSchema(f"Node '{node_id}': unknown {name} '{value}' (expected one of {', '.join(map(repr, choices))})")


class NodeConfig:
    """Base for per-type node configuration."""

    @classmethod
    def from_data(cls, data: Optional[Dict[str, Any]], node_id: str = ''):
        data = data or {}
        kwargs = {}
        for f in fields(cls):
            name = f.metadata.get('key', f.name)
            if name not in data:
                continue
            value = data[name]
            if f.metadata.get('json_object'):
                value = parse_json_object(value, name, node_id)
            kwargs[f.name] = value
        return cls(**kwargs)

    def to_data(self) -> Dict[str, Any]:
        return {f.metadata.get('key', f.name): getattr(self, f.name) for f in fields(self)}

    def validate(self, node_id: str) -> None:
        pass


@dataclass
class BrowserActionConfig(NodeConfig):
    action: str = key('action', 'navigate')
    url: str = key('url', '')
    selector: str = key('selector', '')
    text: str = key('text', '')
    timeout: int = key('timeout', DEFAULT_TIMEOUT)
    script: str = key('script', '')
    full_page: bool = key('fullPage', True)

    def validate(self, node_id: str) -> None:
        _require_choice(node_id, 'action', self.action, BROWSER_ACTIONS)
        required = {
            'navigate': ('url',),
            'click': ('selector',),
            'type': ('selector', 'text'),
            'getText': ('selector',),
            'waitForElement': ('selector', 'timeout'),
            'executeScript': ('script',),
        }.get(self.action, ())
        for name in required:
            if not getattr(self, name):
                raise MissingParameter(node_id, name, f"for {self.action} action")


@dataclass
class ElementExistsConfig(NodeConfig):
    selector: str = key('selector', '')
    timeout: int = key('timeout', DEFAULT_TIMEOUT)
    invert: bool = key('invert', False)

    def validate(self, node_id: str) -> None:
        if not self.selector:
            raise MissingParameter(node_id, 'selector')


@dataclass
class ExecuteJavaScriptConfig(NodeConfig):
    js_code: str = key('jsCode', '')
    pass_input_data: bool = key('passInputData', False)
    timeout: int = key('timeout', SCRIPT_TIMEOUT)
    return_type: str = key('returnType', 'auto')

    def validate(self, node_id: str) -> None:
        if not self.js_code:
            raise MissingParameter(node_id, 'jsCode')
        _require_choice(node_id, 'returnType', self.return_type, RETURN_TYPES)


@dataclass
class ScreenshotConfig(NodeConfig):
    screenshot_type: str = key('screenshotType', 'fullPage')
    selector: str = key('selector', '')
    format: str = key('format', 'png')
    quality: int = key('quality', 80)
    output_mode: str = key('outputMode', 'base64')
    file_name: str = key('fileName', 'screenshot.png')
    omit_background: bool = key('omitBackground', False)
    path: Optional[str] = key('path', None)

    def validate(self, node_id: str) -> None:
        _require_choice(node_id, 'screenshotType', self.screenshot_type, SCREENSHOT_TYPES)
        _require_choice(node_id, 'format', self.format, IMAGE_FORMATS)
        _require_choice(node_id, 'outputMode', self.output_mode, OUTPUT_MODES)
        if self.screenshot_type == 'element' and not self.selector:
            raise MissingParameter(node_id, 'selector', "for element screenshot")
        if not 0 <= int(self.quality) <= 100:
            raise InvalidSchema(f"Node '{node_id}': quality must be between 0 and 100")


@dataclass
class DataCollectorConfig(NodeConfig):
    collection_mode: str = key('collectionMode', 'single')
    root_selector: str = key('rootSelector', '')
    data_schema: Dict[str, Any] = key('dataSchema', json_object=True, factory=dict)
    max_items: int = key('maxItems', MAX_ITEMS)
    include_metadata: bool = key('includeMetadata', False)
    clean_data: bool = key('cleanData', True)

    def validate(self, node_id: str) -> None:
        _require_choice(node_id, 'collectionMode', self.collection_mode, COLLECTION_MODES)
        if self.collection_mode != 'schema' and not self.root_selector:
            raise MissingParameter(node_id, 'rootSelector', f"for {self.collection_mode} mode")
        if self.collection_mode != 'table' and not self.data_schema:
            raise MissingParameter(node_id, 'dataSchema')
        for name, rule in self.data_schema.items():
            if not isinstance(rule, (str, dict)):
                raise InvalidSchema(f"Node '{node_id}': dataSchema field '{name}' must be a selector or an object")


@dataclass
class LoopElementsConfig(NodeConfig):
    selector: str = key('selector', '')
    action: str = key('action', 'getText')
    attribute_name: str = key('attributeName', '')
    data_rules: Dict[str, Any] = key('dataRules', json_object=True, factory=dict)
    max_elements: int = key('maxElements', MAX_ELEMENTS)
    wait_time: int = key('waitTime', 0)

    def validate(self, node_id: str) -> None:
        if not self.selector:
            raise MissingParameter(node_id, 'selector')
        _require_choice(node_id, 'action', self.action, LOOP_ACTIONS)
        if self.action == 'getAttribute' and not self.attribute_name:
            raise MissingParameter(node_id, 'attributeName', "for getAttribute action")
        if self.action == 'getData' and not self.data_rules:
            raise MissingParameter(node_id, 'dataRules', "for getData action")


@dataclass
class DataMapperConfig(NodeConfig):
    mapping_rules: Dict[str, Any] = key('mappingRules', json_object=True, factory=dict)
    keep_original: bool = key('keepOriginal', False)


@dataclass
class ExportDataConfig(NodeConfig):
    format: str = key('format', 'json')
    file_path: str = key('filePath', '')
    data_field: str = key('dataField', '')
    pretty_print: bool = key('prettyPrint', True)
    csv_delimiter: str = key('csvDelimiter', ',')
    include_headers: bool = key('includeHeaders', True)
    append_mode: bool = key('appendMode', False)
    create_directory: bool = key('createDirectory', True)

    def validate(self, node_id: str) -> None:
        if not self.file_path:
            raise MissingParameter(node_id, 'filePath')
        _require_choice(node_id, 'format', self.format, EXPORT_FORMATS)
        _require_choice(node_id, 'csvDelimiter', self.csv_delimiter, CSV_DELIMITERS)


NODE_CONFIGS = {
    'browserAction': BrowserActionConfig,
    'elementExists': ElementExistsConfig,
    'executeJavaScript': ExecuteJavaScriptConfig,
    'screenshot': ScreenshotConfig,
    'dataCollector': DataCollectorConfig,
    'loopElements': LoopElementsConfig,
    'dataMapper': DataMapperConfig,
    'exportData': ExportDataConfig,
}


@dataclass
class Node:
    id: str
    type: str
    config: Optional[NodeConfig] = None
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], validate: bool = True) -> 'Node':
        node_id = str(data.get('id', ''))
        node_type = data.get('type', '')
        config_cls = NODE_CONFIGS.get(node_type)
        if config_cls is None:
            raise UnknownNodeType(node_type, node_id)
        node_data = data.get('data') or {}
        config = config_cls.from_data(node_data, node_id)
        if validate:
            config.validate(node_id)
        return cls(id=node_id, type=node_type, config=config, name=node_data.get('label') or data.get('name'))

    def to_dict(self) -> Dict[str, Any]:
        data = self.config.to_data() if self.config else {}
        if self.name:
            data['label'] = self.name
        return {'id': self.id, 'type': self.type, 'data': data}


@dataclass
class Workflow:
    id: str
    name: str
    nodes: List[Node] = field(default_factory=list)
    description: str = ''
    edges: List[Dict[str, Any]] = field(default_factory=list)
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], validate: bool = True) -> 'Workflow':
        if not isinstance(data, dict):
            raise InvalidSchema("Workflow definition must be an object")
        workflow_id = data.get('id') or data.get('name')
        if not workflow_id:
            raise InvalidSchema("Workflow requires an id or a name")
        nodes = [Node.from_dict(n, validate=validate) for n in data.get('nodes') or []]
        now = now_iso()
        return cls(
            id=str(workflow_id),
            name=data.get('name') or str(workflow_id),
            nodes=nodes,
            description=data.get('description', ''),
            edges=list(data.get('edges') or []),
            created_at=data.get('createdAt') or now,
            updated_at=data.get('updatedAt') or now,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'nodes': [n.to_dict() for n in self.nodes],
            'edges': self.edges,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }


def load_workflow(path: str, validate: bool = True) -> Workflow:
    p = Path(path)
    text = p.read_text(encoding='utf-8')
    try:
        if p.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidSchema(f"Cannot parse workflow file {path}: {e}") from e
    return Workflow.from_dict(data, validate=validate)


@dataclass(frozen=True)
class NodeResult:
    node_id: str
    node_type: str
    success: bool
    data: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'nodeId': self.node_id, 'type': self.node_type, 'success': self.success, 'data': self.data}
        if self.error:
            result['error'] = self.error
        return result


@dataclass(frozen=True)
class RunResult:
    success: bool
    status: str
    results: Tuple[NodeResult, ...] = ()
    error: Optional[str] = None
    data: List[Dict[str, Any]] = field(default_factory=list)
    workflow_id: Optional[str] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None

    @property
    def stopped(self) -> bool:
        return self.status == STATUS_STOPPED

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'success': self.success,
            'status': self.status,
            'workflowId': self.workflow_id,
            'results': [r.to_dict() for r in self.results],
            'data': self.data,
            'startedAt': self.started_at,
            'finishedAt': self.finished_at,
        }
        if self.error:
            result['error'] = self.error
        return result
