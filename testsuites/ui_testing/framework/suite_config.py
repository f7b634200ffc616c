"""
================================================================================
Suite Configuration
================================================================================

Immutable per-suite configuration for the CRM UI suites.

Configuration hierarchy (highest to lowest priority):
    1. Environment variables (ENVIRONMENT, BASE_URL, HEADLESS, ...)
    2. YAML configuration file (``suites.<name>`` and ``environments`` sections)
    3. Built-in suite defaults

Usage:
    >>> config = load_suite_config("IRC")
    >>> config.base_url
    'https://qc2.example-crm.test/'
    >>> config.element_timeout_ms
    5000

================================================================================
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config" / "config.yaml"

ENVIRONMENTS: Dict[str, str] = {
    name: f"https://{name}.example-crm.test/"
    for name in ("qc2", "qc3", "qc4", "qc5", "qc6", "qc7", "uat361", "i361")
}

DEFAULT_BROWSER_ARGS: Tuple[str, ...] = (
    "--start-maximized",
    "--ignore-certificate-errors",
    "--use-fake-ui-for-media-stream",
)

SUITE_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "RBL": {
        "environment": "qc3",
        "test_timeout_ms": 120000,
        "action_timeout_ms": 1000,
        "navigation_timeout_ms": 30000,
    },
    "IRC": {
        "environment": "qc2",
        "test_timeout_ms": 600000,
        "action_timeout_ms": 10000,
        "navigation_timeout_ms": 15000,
    },
    "Sanity": {
        "environment": "qc6",
        "test_timeout_ms": 600000,
        "action_timeout_ms": 10000,
        "navigation_timeout_ms": 15000,
    },
    "SanityAgent": {
        "environment": "qc6",
        "test_timeout_ms": 300000,
        "action_timeout_ms": 15000,
        "navigation_timeout_ms": 20000,
        "agent_timeouts": {
            "login": 30000,
            "call": 60000,
            "wio": 15000,
            "dialer": 45000,
        },
    },
}

_SUITE_ALIASES = {
    "rbl": "RBL",
    "irc": "IRC",
    "sanity": "Sanity",
    "sanityagent": "SanityAgent",
    "sanity_agent": "SanityAgent",
    "sanity-agent": "SanityAgent",
}

# Environment variable -> SuiteConfig field
_ENV_OVERRIDES = {
    "HEADLESS": "headless",
    "BROWSER": "browser_type",
    "CONTINUE_ON_FAILURE": "continue_on_failure",
    "PAGINATION_THRESHOLD": "pagination_threshold",
    "PAGINATION_MAX_PAGES": "pagination_max_pages",
    "IMPORT_POLL_ATTEMPTS": "import_poll_attempts",
}


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


@dataclass(frozen=True)
class SuiteConfig:
    """
    Effective configuration of one suite run.

    Built once by ``load_suite_config`` and passed explicitly to the session
    and page objects.
    """
    suite: str
    environment: str
    base_url: str
    headless: bool = True
    browser_type: str = "chromium"
    browser_args: Tuple[str, ...] = DEFAULT_BROWSER_ARGS
    test_timeout_ms: int = 600000
    action_timeout_ms: int = 10000
    navigation_timeout_ms: int = 15000
    continue_on_failure: bool = True
    pagination_threshold: int = 20
    pagination_max_pages: int = 50
    import_poll_attempts: int = 60
    import_poll_interval_s: float = 1.0
    mapping_batch_size: int = 5
    mapping_batch_delay_ms: int = 200
    agent_timeouts: Dict[str, int] = field(default_factory=dict)

    @property
    def element_timeout_ms(self) -> int:
        return 5000 if self.continue_on_failure else 10000

    @property
    def mapping_batch_delay_s(self) -> float:
        return self.mapping_batch_delay_ms / 1000

    def with_overrides(self, **changes: Any) -> "SuiteConfig":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["element_timeout_ms"] = self.element_timeout_ms
        return data

    def log_config(self) -> None:
        """Log the effective configuration."""
        logger.info(f"{self.suite} configuration:")
        logger.info(f"  Environment: {self.environment} ({self.base_url})")
        logger.info(f"  Browser: {self.browser_type} (headless={self.headless})")
        logger.info(
            f"  Timeouts: test={self.test_timeout_ms}ms action={self.action_timeout_ms}ms "
            f"navigation={self.navigation_timeout_ms}ms element={self.element_timeout_ms}ms"
        )
        logger.info(f"  Continue on failure: {self.continue_on_failure}")
        logger.info(
            f"  Pagination: threshold={self.pagination_threshold} max_pages={self.pagination_max_pages}"
        )
        if self.agent_timeouts:
            logger.info(f"  Agent timeouts: {self.agent_timeouts}")


def normalize_suite_name(suite: str) -> str:
    """
    Map a suite name or alias to its canonical form.

    Raises:
        ConfigurationError: Unknown suite
    """
    key = suite.strip()
    if key in SUITE_DEFAULTS:
        return key
    canonical = _SUITE_ALIASES.get(key.lower())
    if canonical is None:
        raise ConfigurationError(
            f"Unknown suite '{suite}'. Known suites: {', '.join(SUITE_DEFAULTS)}"
        )
    return canonical


def resolve_base_url(environment: str, environments: Optional[Dict[str, str]] = None) -> str:
    """
    Resolve an environment name to its base URL.

    Values that already look like a URL are returned unchanged.

    Raises:
        ConfigurationError: Unknown environment name
    """
    if environment.startswith(("http://", "https://")):
        return environment if environment.endswith("/") else f"{environment}/"
    known = {**ENVIRONMENTS, **(environments or {})}
    try:
        return known[environment.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown environment '{environment}'. Known environments: {', '.join(sorted(known))}"
        ) from None


def load_suite_config(
    suite: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> SuiteConfig:
    """
    Build the configuration of a suite.

    Args:
        suite: Suite name (RBL, IRC, Sanity, SanityAgent); defaults to the
            SUITE env var, then Sanity
        config_path: YAML file; defaults to ``config/config.yaml``

    Returns:
        Frozen SuiteConfig

    Raises:
        ConfigurationError: Unknown suite/environment or invalid YAML
    """
    name = normalize_suite_name(suite or os.getenv("SUITE", "Sanity"))
    yaml_config = _read_yaml(config_path or DEFAULT_CONFIG_PATH)

    values: Dict[str, Any] = dict(SUITE_DEFAULTS[name])
    values.update((yaml_config.get("suites") or {}).get(name) or {})

    known_fields = set(SuiteConfig.__dataclass_fields__)
    unknown = set(values) - known_fields
    if unknown:
        raise ConfigurationError(f"Unknown keys for suite {name}: {', '.join(sorted(unknown))}")

    environment = os.getenv("ENVIRONMENT") or values.pop("environment")
    values.pop("environment", None)
    base_url = os.getenv("BASE_URL") or values.pop("base_url", None) or resolve_base_url(
        environment, yaml_config.get("environments")
    )
    values.pop("base_url", None)

    defaults = SuiteConfig(suite=name, environment=environment, base_url=base_url)
    for env_key, field_name in _ENV_OVERRIDES.items():
        env_value = os.environ.get(env_key)
        if env_value is not None:
            values[field_name] = _convert_type(env_value, getattr(defaults, field_name))

    if "browser_args" in values:
        values["browser_args"] = tuple(values["browser_args"])

    config = replace(defaults, **values)
    logger.debug(f"Loaded {name} configuration for {config.environment}")
    return config


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug(f"Configuration file not found: {path}. Using suite defaults.")
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e


def _convert_type(value: str, reference: Any) -> Any:
    """
    Convert an environment string to the type of the reference value.
    """
    if isinstance(reference, bool):
        return value.strip().lower() in ("true", "1", "yes", "on")
    if isinstance(reference, int):
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"Expected an integer, got '{value}'") from None
    return value


__all__ = [
    "ConfigurationError",
    "ENVIRONMENTS",
    "SUITE_DEFAULTS",
    "SuiteConfig",
    "load_suite_config",
    "normalize_suite_name",
    "resolve_base_url",
]
