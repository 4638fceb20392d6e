"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

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


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""


# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """データ構造を再帰的に走査し、文字列中の環境変数を展開する"""
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """必須フィールドの存在を検証する

    Args:
        data: 検証対象のdict
        field: フィールド名
        parent: 親フィールド名（エラーメッセージ用）

    Returns:
        フィールドの値

    Raises:
        ConfigValidationError: フィールドが存在しない
    """
    if field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _optional_section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """任意セクションを取得する（未指定なら空dict）"""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigValidationError(f"Section '{name}' must be a mapping")
    return section


def _parse_boundary(data: dict[str, Any]) -> BoundaryConfig:
    defaults = BoundaryConfig()
    config = BoundaryConfig(
        window_size=data.get("window_size", defaults.window_size),
        min_messages=data.get("min_messages", defaults.min_messages),
        classification_timeout_seconds=data.get(
            "classification_timeout_seconds",
            defaults.classification_timeout_seconds,
        ),
    )
    if config.min_messages < 1 or config.window_size < config.min_messages:
        raise ConfigValidationError(
            "boundary.window_size must be >= boundary.min_messages >= 1"
        )
    return config


def _parse_topic_context(data: dict[str, Any]) -> TopicContextConfig:
    defaults = TopicContextConfig()
    return TopicContextConfig(
        limit=data.get("limit", defaults.limit),
        token_budget=data.get("token_budget", defaults.token_budget),
        search_timeout_seconds=data.get(
            "search_timeout_seconds", defaults.search_timeout_seconds
        ),
    )


def _parse_presence(data: dict[str, Any]) -> PresenceConfig:
    defaults = PresenceConfig()
    return PresenceConfig(
        check_interval_seconds=data.get(
            "check_interval_seconds", defaults.check_interval_seconds
        ),
        idle_threshold_seconds=data.get(
            "idle_threshold_seconds", defaults.idle_threshold_seconds
        ),
        salience_threshold=data.get("salience_threshold", defaults.salience_threshold),
    )


def _parse_topics(data: dict[str, Any]) -> TopicConfig:
    defaults = TopicConfig()
    config = TopicConfig(
        active_threshold=data.get("active_threshold", defaults.active_threshold),
        frequency_half_life_seconds=data.get(
            "frequency_half_life_seconds", defaults.frequency_half_life_seconds
        ),
        mention_saturation=data.get(
            "mention_saturation", defaults.mention_saturation
        ),
    )
    if config.frequency_half_life_seconds <= 0 or config.mention_saturation <= 0:
        raise ConfigValidationError(
            "topics.frequency_half_life_seconds and topics.mention_saturation "
            "must be positive"
        )
    return config


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 必須項目が欠落
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f) or {}

    # 環境変数を展開
    data = _expand_recursive(raw_data)

    # DatabaseConfig
    database_data = _validate_required_field(data, "database")
    database = DatabaseConfig(
        path=_validate_required_field(database_data, "path", "database"),
    )

    # LLMConfig (defaultは必須)
    llm_data = _validate_required_field(data, "llm")
    _validate_required_field(llm_data, "default", "llm")
    llm: dict[str, LLMConfig] = {}
    for key, llm_item in llm_data.items():
        model = _validate_required_field(llm_item, "model", f"llm.{key}")
        llm[key] = LLMConfig(
            model=model,
            temperature=llm_item.get("temperature", 0.2),
            max_tokens=llm_item.get("max_tokens", 512),
        )

    server_data = _optional_section(data, "server")
    server = ServerConfig(
        host=server_data.get("host", "127.0.0.1"),
        port=server_data.get("port", 8080),
    )

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            loggers=logging_data.get("loggers"),
            debug_llm_messages=logging_data.get("debug_llm_messages", False),
        )

    return Config(
        database=database,
        llm=llm,
        boundary=_parse_boundary(_optional_section(data, "boundary")),
        topic_context=_parse_topic_context(_optional_section(data, "topic_context")),
        presence=_parse_presence(_optional_section(data, "presence")),
        topics=_parse_topics(_optional_section(data, "topics")),
        server=server,
        logging=logging_config,
    )
