"""設定データクラス"""

from dataclasses import dataclass, field


@dataclass
class DatabaseConfig:
    """データベース設定"""

    path: str


@dataclass
class LLMConfig:
    """LLM設定（LiteLLMのcompletionに渡すdict）"""

    model: str
    temperature: float = 0.2
    max_tokens: int = 512


@dataclass
class BoundaryConfig:
    """会話境界判定設定

    Attributes:
        window_size: 判定に使う直近メッセージ数
        min_messages: 判定に必要な最小メッセージ数
        classification_timeout_seconds: トピック分類のタイムアウト秒数
    """

    window_size: int = 5
    min_messages: int = 2
    classification_timeout_seconds: float = 10.0


@dataclass
class TopicContextConfig:
    """トピックコンテキスト設定"""

    limit: int = 5
    token_budget: int = 500
    search_timeout_seconds: float = 5.0


@dataclass
class PresenceConfig:
    """プレゼンス（自発的な声かけ）設定

    Attributes:
        check_interval_seconds: 評価間隔
        idle_threshold_seconds: 声かけまでの最小アイドル時間（4時間）
        salience_threshold: アクティブトピックとみなす平均重み
    """

    check_interval_seconds: int = 300
    idle_threshold_seconds: int = 14400
    salience_threshold: float = 0.5


@dataclass
class TopicConfig:
    """トピック重み設定

    Attributes:
        active_threshold: get_active のデフォルト閾値
        frequency_half_life_seconds: 頻度重みの半減期（7日）
        mention_saturation: 頻度重みが 0.5 に達する言及回数
    """

    active_threshold: float = 0.3
    frequency_half_life_seconds: int = 604800
    mention_saturation: float = 5.0


@dataclass
class ServerConfig:
    """内部 RPC サーバー設定"""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None
    debug_llm_messages: bool = False


@dataclass
class Config:
    """アプリケーション設定"""

    database: DatabaseConfig
    llm: dict[str, LLMConfig]
    boundary: BoundaryConfig = field(default_factory=BoundaryConfig)
    topic_context: TopicContextConfig = field(default_factory=TopicContextConfig)
    presence: PresenceConfig = field(default_factory=PresenceConfig)
    topics: TopicConfig = field(default_factory=TopicConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig | None = None
