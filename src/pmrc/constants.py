# src/pmrc/constants.py
"""Central constants used across the project."""


# --- env keys ---
DEFAULT_ENV_LOG_LEVEL: str = "LOG_LEVEL"
ENV_PNPM_HOME: str = "PNPM_HOME"
ENV_COREPACK_STRICT: str = "COREPACK_ENABLE_STRICT"
ENV_PREFIX: str = "PREFIX"
ENV_LOCALAPPDATA: str = "LOCALAPPDATA"
ENV_XDG_CONFIG_HOME: str = "XDG_CONFIG_HOME"
ENV_XDG_DATA_HOME: str = "XDG_DATA_HOME"
ENV_XDG_CACHE_HOME: str = "XDG_CACHE_HOME"
ENV_XDG_STATE_HOME: str = "XDG_STATE_HOME"
# prefixes of the environment layer, matched case-insensitively
ENV_CONFIG_PREFIXES: tuple[str, ...] = ("npm_config_", "pnpm_config_")

# --- program defaults ---
DEFAULT_LOG_LEVEL: str = "info"
LOG_LEVELS: list[str] = ["trace", "debug", "info", "warning", "error", "critical"]
DEFAULT_PACKAGE_MANAGER_NAME: str = "pnpm"
DEFAULT_PACKAGE_MANAGER_VERSION: str = "undefined"

# --- file names ---
RC_FILE_NAME: str = ".npmrc"
GLOBAL_RC_FILE_NAME: str = "rc"
BUILTIN_RC_FILE_NAME: str = "builtinrc"
WORKSPACE_MANIFEST_FILE_NAME: str = "pnpm-workspace.yaml"
PROJECT_MANIFEST_FILE_NAMES: tuple[str, ...] = ("package.json", "package.yaml")

# --- layout ---
LAYOUT_VERSION: int = 5
GLOBAL_DIR_NAME: str = "global"
GLOBAL_VIRTUAL_STORE_DIR: str = ".pnpm"
MATCH_ALL_PATTERN: str = "*"
DEFAULT_WORKSPACE_PATTERNS: list[str] = ["."]
MAX_DEFAULT_WORKSPACE_CONCURRENCY: int = 4
VIRTUAL_STORE_DIR_MAX_LENGTH_WINDOWS: int = 60
VIRTUAL_STORE_DIR_MAX_LENGTH: int = 120

# --- registries ---
DEFAULT_REGISTRY: str = "https://registry.npmjs.org/"
DEFAULT_RAW_REGISTRIES: dict[str, str] = {
    "registry": DEFAULT_REGISTRY,
    "@jsr:registry": "https://npm.jsr.io/",
}

# --- rc key markers ---
CREDENTIAL_KEY_PREFIX: str = "//"
SCOPED_REGISTRY_SUFFIX: str = ":registry"
