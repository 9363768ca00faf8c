import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import yaml
except ModuleNotFoundError as exc:  # pragma: no cover - import guard
    raise ModuleNotFoundError(
        "PyYAML is required to load application configuration. Install it via 'pip install pyyaml'."
    ) from exc
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_APP_CONFIG_PATH = "config/app.yaml"


class SmltDefaults(BaseModel):
    id_field: str = "id"
    count: int = 10
    vector_weight: float = 0.7
    lexical_weight: float = 0.3
    vector_field: str = "content_vector"
    lexical_fields: List[str] = Field(default_factory=lambda: ["title", "content"])
    return_fields: List[str] = Field(default_factory=lambda: ["id", "title", "content", "category"])

    class Config:
        extra = "ignore"


class LexicalSettings(BaseModel):
    stopwords_language: str = "en"
    min_token_length: int = 3
    # "More like this" term pruning; 1/1 keeps every term the source shares with the corpus.
    min_term_freq: int = 1
    min_doc_freq: int = 1
    max_query_terms: int = 25

    class Config:
        extra = "ignore"


class ChromaSettings(BaseModel):
    collection_name: str = "smlt_documents"
    # vector field -> collection holding that field's embeddings
    vector_collections: Dict[str, str] = Field(
        default_factory=lambda: {"content_vector": "smlt_documents"}
    )
    max_retries: int = 3
    retry_delay: float = 1.0

    class Config:
        extra = "ignore"


class TelemetrySettings(BaseModel):
    log_level: str = "INFO"
    metrics_enabled: bool = True

    class Config:
        extra = "ignore"


class AppConfig(BaseModel):
    smlt: SmltDefaults = Field(default_factory=SmltDefaults)
    lexical: LexicalSettings = Field(default_factory=LexicalSettings)
    chroma: ChromaSettings = Field(default_factory=ChromaSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    class Config:
        extra = "ignore"


def _resolve_config_path(path_str: str) -> Path:
    candidate = Path(path_str).expanduser()
    if not candidate.is_absolute():
        candidate = (PROJECT_ROOT / candidate).resolve()
    return candidate


def _load_app_config(path: Path) -> AppConfig:
    if not path.exists():
        logger.warning("App config file %s not found; using defaults", path)
        return AppConfig()
    try:
        with path.open("r", encoding="utf-8") as handle:
            raw: Dict[str, Any] = yaml.safe_load(handle) or {}
    except Exception as exc:  # pragma: no cover - configuration failures are fatal
        logger.error("Failed to load app config from %s: %s", path, exc)
        raise
    return AppConfig(**raw)


@lru_cache(maxsize=4)
def _load_app_config_cached(resolved_path: str) -> AppConfig:
    return _load_app_config(Path(resolved_path))


def get_app_config(path_str: str) -> AppConfig:
    resolved = _resolve_config_path(path_str)
    return _load_app_config_cached(str(resolved))


class Settings(BaseSettings):
    # ChromaDB Configuration
    chroma_host: str = Field("localhost", description="Hostname for ChromaDB")
    chroma_port: int = Field(8100, description="Port for ChromaDB")

    # App configuration
    # Read from SMLT_APP_CONFIG_PATH / SMLT_LOG_LEVEL
    smlt_app_config_path: str = Field(
        DEFAULT_APP_CONFIG_PATH,
        description="Path to the YAML configuration file controlling SMLT defaults and index access.",
    )
    smlt_log_level: Optional[str] = Field(None, description="Overrides telemetry.log_level when set")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def resolved_app_config_path(self) -> Path:
        return _resolve_config_path(self.smlt_app_config_path)

    @property
    def app_config(self) -> AppConfig:
        return get_app_config(self.smlt_app_config_path)

    @property
    def smlt_defaults(self) -> SmltDefaults:
        return self.app_config.smlt

    @property
    def log_level(self) -> str:
        return self.smlt_log_level or self.app_config.telemetry.log_level


# Initialize settings
settings = Settings()
