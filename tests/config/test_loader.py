"""設定ローダーのテスト"""

import os
from pathlib import Path
from typing import Generator

import pytest
import yaml

from continuum.config import (
    BoundaryConfig,
    Config,
    ConfigValidationError,
    EnvironmentVariableError,
    LLMConfig,
    PresenceConfig,
    TopicConfig,
    expand_env_vars,
    load_config,
)


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """一時的な設定ディレクトリを作成"""
    return tmp_path


@pytest.fixture
def env_vars() -> Generator[dict[str, str], None, None]:
    """テスト用環境変数を設定・クリーンアップ"""
    test_vars = {
        "TEST_DB_PATH": "/tmp/continuum-test.db",
        "TEST_MODEL": "gpt-4o-mini",
        "TEST_VAR_A": "valueA",
        "TEST_VAR_B": "valueB",
    }
    for key, value in test_vars.items():
        os.environ[key] = value
    yield test_vars
    for key in test_vars:
        os.environ.pop(key, None)


MINIMAL_CONFIG = """
database:
  path: "./data/continuum.db"

llm:
  default:
    model: "gpt-4o"
"""


class TestExpandEnvVars:
    """expand_env_vars関数のテスト"""

    def test_single_variable(self, env_vars: dict[str, str]) -> None:
        """単一の変数を展開できる"""
        assert expand_env_vars("${TEST_MODEL}") == "gpt-4o-mini"

    def test_multiple_variables(self, env_vars: dict[str, str]) -> None:
        """複数の変数を展開できる"""
        assert expand_env_vars("${TEST_VAR_A}_${TEST_VAR_B}") == "valueA_valueB"

    def test_no_variables(self) -> None:
        """変数がない場合はそのまま返す"""
        assert expand_env_vars("plain text") == "plain text"

    def test_undefined_variable(self) -> None:
        """未設定の変数でEnvironmentVariableErrorが発生"""
        with pytest.raises(EnvironmentVariableError) as exc_info:
            expand_env_vars("${UNDEFINED_VAR_12345}")
        assert "UNDEFINED_VAR_12345" in str(exc_info.value)

    def test_empty_string(self) -> None:
        """空文字列はそのまま返す"""
        assert expand_env_vars("") == ""


class TestLoadConfig:
    """load_config関数のテスト"""

    def test_load_minimal_config(self, temp_config_dir: Path) -> None:
        """必須項目のみの設定ファイルを読み込める（他はデフォルト値）"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(MINIMAL_CONFIG)

        config = load_config(config_path)

        assert isinstance(config, Config)
        assert config.database.path == "./data/continuum.db"
        assert config.llm["default"].model == "gpt-4o"
        assert config.llm["default"].temperature == 0.2
        assert config.boundary == BoundaryConfig()
        assert config.presence == PresenceConfig()
        assert config.topics == TopicConfig()
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 8080
        assert config.logging is None

    def test_load_full_config(self, temp_config_dir: Path) -> None:
        """全セクションを読み込める"""
        config_content = """
database:
  path: ":memory:"

llm:
  default:
    model: "gpt-4o"
    temperature: 0.7
    max_tokens: 1000
  classifier:
    model: "gpt-4o-mini"
    temperature: 0.0

boundary:
  window_size: 8
  min_messages: 3
  classification_timeout_seconds: 2.5

topic_context:
  limit: 3
  token_budget: 200

presence:
  check_interval_seconds: 60
  idle_threshold_seconds: 3600
  salience_threshold: 0.4

topics:
  active_threshold: 0.25
  frequency_half_life_seconds: 86400
  mention_saturation: 3

server:
  host: "0.0.0.0"
  port: 9090

logging:
  level: DEBUG
  debug_llm_messages: true
  loggers:
    LiteLLM: WARNING
"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(config_content)

        config = load_config(config_path)

        assert config.llm["classifier"].model == "gpt-4o-mini"
        assert config.llm["classifier"].temperature == 0.0
        assert config.llm["classifier"].max_tokens == 512
        assert config.boundary.window_size == 8
        assert config.boundary.min_messages == 3
        assert config.boundary.classification_timeout_seconds == 2.5
        assert config.topic_context.limit == 3
        assert config.topic_context.token_budget == 200
        assert config.topic_context.search_timeout_seconds == 5.0
        assert config.presence.check_interval_seconds == 60
        assert config.presence.salience_threshold == 0.4
        assert config.topics.frequency_half_life_seconds == 86400
        assert config.server.port == 9090
        assert config.logging is not None
        assert config.logging.level == "DEBUG"
        assert config.logging.debug_llm_messages is True
        assert config.logging.loggers == {"LiteLLM": "WARNING"}

    def test_env_var_expansion(
        self, temp_config_dir: Path, env_vars: dict[str, str]
    ) -> None:
        """環境変数が正しく展開される"""
        config_content = """
database:
  path: ${TEST_DB_PATH}

llm:
  default:
    model: ${TEST_MODEL}
"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(config_content)

        config = load_config(config_path)

        assert config.database.path == "/tmp/continuum-test.db"
        assert config.llm["default"].model == "gpt-4o-mini"

    def test_file_not_found(self) -> None:
        """存在しないファイルでFileNotFoundErrorが発生"""
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/path/config.yaml")

    def test_undefined_env_var(self, temp_config_dir: Path) -> None:
        """未定義の環境変数でEnvironmentVariableErrorが発生"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(
            MINIMAL_CONFIG.replace('"gpt-4o"', "${UNDEFINED_MODEL_VAR}")
        )

        with pytest.raises(EnvironmentVariableError):
            load_config(config_path)

    def test_missing_database_section(self, temp_config_dir: Path) -> None:
        """databaseセクションがない場合にConfigValidationErrorが発生"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(
            """
llm:
  default:
    model: "gpt-4o"
"""
        )

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(config_path)
        assert "database" in str(exc_info.value)

    def test_missing_default_llm(self, temp_config_dir: Path) -> None:
        """llm.defaultがない場合にConfigValidationErrorが発生"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(
            """
database:
  path: ":memory:"

llm:
  classifier:
    model: "gpt-4o"
"""
        )

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(config_path)
        assert "llm.default" in str(exc_info.value)

    def test_missing_model(self, temp_config_dir: Path) -> None:
        """modelがない場合にConfigValidationErrorが発生"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(
            """
database:
  path: ":memory:"

llm:
  default:
    temperature: 0.5
"""
        )

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(config_path)
        assert "llm.default.model" in str(exc_info.value)

    def test_invalid_boundary_window(self, temp_config_dir: Path) -> None:
        """window_size < min_messages はConfigValidationError"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(
            MINIMAL_CONFIG
            + """
boundary:
  window_size: 1
  min_messages: 2
"""
        )

        with pytest.raises(ConfigValidationError):
            load_config(config_path)

    def test_invalid_half_life(self, temp_config_dir: Path) -> None:
        """半減期が0以下ならConfigValidationError"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(
            MINIMAL_CONFIG
            + """
topics:
  frequency_half_life_seconds: 0
"""
        )

        with pytest.raises(ConfigValidationError):
            load_config(config_path)

    def test_section_must_be_mapping(self, temp_config_dir: Path) -> None:
        """任意セクションがdictでない場合はConfigValidationError"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text(MINIMAL_CONFIG + "\npresence: [1, 2]\n")

        with pytest.raises(ConfigValidationError):
            load_config(config_path)

    def test_yaml_syntax_error(self, temp_config_dir: Path) -> None:
        """YAML構文エラーでyaml.YAMLErrorが発生"""
        config_path = temp_config_dir / "config.yaml"
        config_path.write_text("database: [unclosed")

        with pytest.raises(yaml.YAMLError):
            load_config(config_path)


class TestDataClasses:
    """データクラスのテスト"""

    def test_llm_config_with_defaults(self) -> None:
        """LLMConfigのデフォルト値"""
        config = LLMConfig(model="gpt-4o")
        assert config.temperature == 0.2
        assert config.max_tokens == 512

    def test_presence_config_defaults(self) -> None:
        """PresenceConfigのデフォルト値（4時間のアイドル）"""
        config = PresenceConfig()
        assert config.idle_threshold_seconds == 4 * 60 * 60
        assert config.salience_threshold == 0.5
