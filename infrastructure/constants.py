from pathlib import Path

# Repo-root conventional directories/files (overrideable via client.yaml / CLI flags)
CONFIG_DIR = Path("configs")
CLIENT_CONFIG_FILE = CONFIG_DIR / "client.yaml"

STATE_DIR = Path(".foreman")
STATE_FILE = STATE_DIR / "taxonomy_preferences.json"

# API layout
REST_PREFIX = "/api/v2"
GRAPHQL_PATH = "/api/graphql"
ORGANIZATIONS_PATH = "/organizations"
LOCATIONS_PATH = "/locations"
CURRENT_USER_PATH = "/current_user"

DEFAULT_PER_PAGE = 100
