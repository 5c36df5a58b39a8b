import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

basedir = Path(__file__).resolve().parent.parent
load_dotenv(basedir / ".env")

P5_SUBSET_URL = "https://tei-c.org/release/xml/tei/odd/p5subset.json"


class DevelopmentConfig:
    DEBUG = True
    CORS_ORIGINS = "*"


class ProductionConfig:
    DEBUG = False
    CORS_ORIGINS = "https://yourdomain.com"


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig
}


@dataclass
class SchemaConfig:
    """Schema corpus and compiled module locations."""
    corpus_path: Path = basedir / "data" / "p5subset.json"
    corpus_url: str = P5_SUBSET_URL
    compiled_dir: Path = basedir / "data" / "compiled"
    default_schema: str = "tei_all"

    def __post_init__(self):
        """Convert paths to Path objects."""
        if isinstance(self.corpus_path, str):
            self.corpus_path = Path(self.corpus_path)
        if isinstance(self.compiled_dir, str):
            self.compiled_dir = Path(self.compiled_dir)


@dataclass
class ValidatorConfig:
    """Message shaping for document diagnostics."""
    enum_preview_limit: int = 5
    self_closing_preview_limit: int = 3


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_file: Optional[Path] = None


@dataclass
class TEIConfig:
    """Aggregated configuration for the schema engine."""
    schema: SchemaConfig = field(default_factory=SchemaConfig)
    validator: ValidatorConfig = field(default_factory=ValidatorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_environment(cls) -> "TEIConfig":
        """Build configuration from TEI_* environment variables."""
        schema = SchemaConfig()
        if corpus_path := os.environ.get("TEI_CORPUS_PATH"):
            schema.corpus_path = Path(corpus_path)
        if corpus_url := os.environ.get("TEI_CORPUS_URL"):
            schema.corpus_url = corpus_url
        if compiled_dir := os.environ.get("TEI_COMPILED_DIR"):
            schema.compiled_dir = Path(compiled_dir)
        if default_schema := os.environ.get("TEI_DEFAULT_SCHEMA"):
            schema.default_schema = default_schema

        validator = ValidatorConfig(
            enum_preview_limit=int(os.environ.get("TEI_ENUM_PREVIEW_LIMIT", 5)),
            self_closing_preview_limit=int(os.environ.get("TEI_SELF_CLOSING_PREVIEW_LIMIT", 3)),
        )

        log_file = os.environ.get("TEI_LOG_FILE")
        logging_config = LoggingConfig(
            level=os.environ.get("TEI_LOG_LEVEL", "INFO").upper(),
            log_file=Path(log_file) if log_file else None,
        )

        return cls(schema=schema, validator=validator, logging=logging_config)
