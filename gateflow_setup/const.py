"""Constants for the GateFlow setup tool."""

from pathlib import Path
from typing import Final

TOOL_NAME: Final = "setup_gateflow_config"

CONF_VERIFICATION_CODE: Final = "verification_code"
CONF_PROJECT_REF: Final = "project_ref"

DEFAULT_CONFIG_DIR: Final = Path.home() / ".config" / "gateflow"
DEPLOY_CONFIG_FILENAME: Final = "deploy-config.env"
SESSION_STATE_FILENAME: Final = ".setup-state.json"
DEFAULT_TOKEN_PATH: Final = Path.home() / ".config" / "supabase" / "access_token"

DEFAULT_DASHBOARD_URL: Final = "https://supabase.com"
DEFAULT_API_URL: Final = "https://api.supabase.com"
DEFAULT_HTTP_TIMEOUT: Final = 30.0

TOKEN_NAME_PREFIX: Final = "mikrus_mcp_"

# Domain strategy written into a fresh deploy config (auto = Cytrus subdomain)
DEFAULT_DOMAIN: Final = "-"
DEFAULT_DOMAIN_TYPE: Final = "cytrus"

TOKENS_DASHBOARD_URL: Final = "https://supabase.com/dashboard/account/tokens"
PROJECTS_DASHBOARD_URL: Final = "https://supabase.com/dashboard"
