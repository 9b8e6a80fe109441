from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_VESSEL_SWEEP_IDS = [
    "737",
    "734",
    "735",
    "736",
    "738",
    "739",
    "740",
    "741",
    "742",
    "1000",
    "1001",
    "1002",
    "1003",
    "1004",
    "1005",
    "1006",
    "1007",
    "1008",
    "1009",
    "1010",
]


class Settings(BaseSettings):
    """環境変数から設定を読み込む。"""

    base_url: str = Field(default="https://www.cruisemapper.com", description="取得元サイトのルートURL")
    resource_constrained: bool = Field(
        default=False,
        validation_alias=AliasChoices("RESOURCE_CONSTRAINED", "RENDER"),
        description="メモリ制約環境（Render等）ではブラウザを使わずHTTP取得のみにする",
    )
    user_agent: str = Field(default="Mozilla/5.0 (compatible; CruiseMapperBot/1.0)")
    http_timeout_sec: float = Field(default=10.0, description="HTTP取得のタイムアウト（秒）")
    browser_nav_timeout_ms: int = Field(default=8000, description="ブラウザ遷移のタイムアウト（ミリ秒）")
    browser_settle_ms: int = Field(default=500, description="動的コンテンツ待ち時間（ミリ秒）")
    identifier_cache_size: int = Field(default=1024, ge=1, description="名前→ID キャッシュの上限件数")
    vessel_sweep_ids: list[str] = Field(
        default_factory=lambda: list(DEFAULT_VESSEL_SWEEP_IDS),
        description="船名スラッグと組み合わせて総当たりするID候補（順序どおりに試す）",
    )
    log_level: str = Field(default="INFO")
    agent_debug: bool = Field(default=False, description="CLIのデバッグ出力を有効化")
    agent_save_runs: bool = Field(default=False, description="CLIの結果をruns/へ保存")

    model_config = SettingsConfigDict(
        env_file=["../.env", ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
