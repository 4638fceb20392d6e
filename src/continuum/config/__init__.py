"""設定管理モジュール"""

from continuum.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from continuum.config.models import (
    BoundaryConfig,
    Config,
    DatabaseConfig,
    LLMConfig,
    LoggingConfig,
    PresenceConfig,
    ServerConfig,
    TopicConfig,
    TopicContextConfig,
)

__all__ = [
    "BoundaryConfig",
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "DatabaseConfig",
    "EnvironmentVariableError",
    "LLMConfig",
    "LoggingConfig",
    "PresenceConfig",
    "ServerConfig",
    "TopicConfig",
    "TopicContextConfig",
    "expand_env_vars",
    "load_config",
]
