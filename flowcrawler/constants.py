# constants.py
import logging

logger = logging.getLogger(__name__)

# Browser
DEFAULT_VIEWPORT = {'width': 1920, 'height': 1080}
USER_AGENT = "flowcrawler/1.0"
BROWSER_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-accelerated-2d-canvas',
    '--no-first-run',
    '--no-zygote',
    '--disable-gpu',
]

# Timeouts (ms)
DEFAULT_TIMEOUT = 5000
NAVIGATION_TIMEOUT = 30000
SCRIPT_TIMEOUT = 30000
NAVIGATION_WAIT_UNTIL = 'load'

# Limits
MAX_ITEMS = 100
MAX_ELEMENTS = 100

# Workflow storage
WORKFLOWS_DIR = "workflows"
NEO4J_URI = "bolt://localhost:7687"
NEO4J_USER = "neo4j"
NEO4J_PASSWORD = "testpassword"

NODE_TYPES = (
    'browserAction',
    'elementExists',
    'executeJavaScript',
    'screenshot',
    'dataCollector',
    'loopElements',
    'dataMapper',
    'exportData',
)
