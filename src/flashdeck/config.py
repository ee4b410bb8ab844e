from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


APP_DIR_NAME = "flashdeck"
CONFIG_FILE_ENV = "FLASHDECK_CONFIG_FILE"
_LOCAL_DATA_DIR = Path("./data")


def default_data_dir() -> Path:
    """Return the data directory following the XDG base directory layout.

    開発時（カレントに ./data がある場合）はそれを優先し、無ければ
    $XDG_DATA_HOME/flashdeck、さらに ~/.local/share/flashdeck にフォールバックする。
    """

    if _LOCAL_DATA_DIR.is_dir():
        return _LOCAL_DATA_DIR
    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        return Path(xdg_data_home) / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME


def default_config_dir() -> Path:
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def config_file_path() -> Path:
    """Path of the JSON config file (overridable via FLASHDECK_CONFIG_FILE)."""

    override = (os.environ.get(CONFIG_FILE_ENV) or "").strip()
    if override:
        return Path(override).expanduser()
    return default_config_dir() / "config.json"


class StudySessionConfig(BaseModel):
    show_progress: bool = Field(default=True, description="Show 'Card N of M' / 進捗表示")
    cards_per_session: int = Field(
        default=20,
        ge=0,
        description="Max cards per study session / 1セッションの最大出題数",
    )
    new_cards_per_day: int = Field(
        default=10,
        ge=0,
        description="Max new cards introduced per day / 1日あたりの新規カード上限",
    )


class Settings(BaseSettings):
    """Application settings.

    設定の優先順位（高い順）:
    - 明示的な引数（CLI オプション）
    - 環境変数（FLASHDECK_ 接頭辞、ネストは __ 区切り。例: FLASHDECK_STUDY_SESSION__CARDS_PER_SESSION）
    - .env
    - JSON 設定ファイル（$XDG_CONFIG_HOME/flashdeck/config.json）
    """

    environment: str = Field(
        default="development",
        description="Runtime environment / 実行環境",
    )
    data_directory: Path = Field(
        default_factory=default_data_dir,
        description="Directory holding one JSON file per deck / デッキJSONの保存先",
    )
    auto_create_data_dir: bool = Field(
        default=True,
        description="Create the data directory on startup / 起動時にデータディレクトリを作成する",
    )
    default_ease_factor: float = Field(
        default=2.5,
        ge=1.3,
        description="Initial ease factor for new cards / 新規カードの初期 ease",
    )
    theme: str = Field(default="default", description="UI theme name / テーマ名")
    backup_enabled: bool = Field(
        default=False,
        description="Copy the previous deck file before overwriting / 上書き前にバックアップを取る",
    )
    backup_directory: str = Field(
        default="",
        description="Backup directory (defaults to <data>/backups) / バックアップ先",
    )
    study_session: StudySessionConfig = Field(default_factory=StudySessionConfig)

    log_level: str = Field(default="WARNING", description="Log level / ログレベル")
    log_file: str | None = Field(
        default=None,
        description="Write JSON logs to this file instead of stderr / ログ出力先ファイル",
    )

    model_config = SettingsConfigDict(
        env_prefix="FLASHDECK_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = (value or "").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log level: {value}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls, json_file=config_file_path()),
        )

    def expanded_data_dir(self) -> Path:
        return self.data_directory.expanduser()

    def expanded_backup_dir(self) -> Path | None:
        if not self.backup_enabled:
            return None
        if self.backup_directory.strip():
            return Path(self.backup_directory).expanduser()
        return self.expanded_data_dir() / "backups"

    def save(self, path: Path | None = None) -> Path:
        """Write the persistent part of the settings as the JSON config file."""

        target = path or config_file_path()
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = self.model_dump_json(
            indent=2,
            exclude={"environment", "log_level", "log_file"},
        )
        target.write_text(payload + "\n", encoding="utf-8")
        return target


def load_settings(**overrides: object) -> Settings:
    """Build settings, dropping overrides that were not supplied (None)."""

    return Settings(**{key: value for key, value in overrides.items() if value is not None})
