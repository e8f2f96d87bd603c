"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class PostgreSQLConfig(BaseModel):
    """PostgreSQL database configuration."""

    db: str = Field(default="yoyo_mall", alias="POSTGRES_DB", description="PostgreSQL database name")
    user: str = Field(default="yoyo", alias="POSTGRES_USER", description="PostgreSQL database user")
    password: str = Field(default="changeme", alias="POSTGRES_PASSWORD", description="PostgreSQL database password")
    host: str = Field(default="postgres", alias="POSTGRES_HOST", description="PostgreSQL database host address")
    port: int = Field(default=5432, alias="POSTGRES_PORT", description="PostgreSQL database port number")

    model_config = {"populate_by_name": True}

    @property
    def url(self) -> str:
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db}"


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )
    allow_methods: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_METHODS", description="Allowed HTTP methods (use * for all)"
    )
    allow_headers: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_HEADERS", description="Allowed HTTP headers (use * for all)"
    )

    model_config = {"populate_by_name": True}


class AuthConfig(BaseModel):
    """Token signing, password hashing and Google sign-in configuration."""

    jwt_secret: str = Field(
        default="dev-insecure-jwt-secret", alias="JWT_SECRET", description="Secret key used to sign access tokens"
    )
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM", description="JWT signing algorithm")
    jwt_expire_days: int = Field(default=30, alias="JWT_EXPIRE_DAYS", description="Access token lifetime in days")
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS", description="bcrypt cost factor for new hashes")
    google_client_id: Optional[str] = Field(
        default=None, alias="GOOGLE_CLIENT_ID", description="OAuth client id expected as the Google token audience"
    )
    google_tokeninfo_url: str = Field(
        default="https://oauth2.googleapis.com/tokeninfo",
        alias="GOOGLE_TOKENINFO_URL",
        description="Google endpoint used to verify ID tokens",
    )

    model_config = {"populate_by_name": True}


class StorageConfig(BaseModel):
    """S3-compatible object storage (OSS) configuration."""

    access_key_id: Optional[str] = Field(default=None, alias="OSS_ACCESS_KEY_ID", description="OSS access key id")
    access_key_secret: Optional[str] = Field(
        default=None, alias="OSS_ACCESS_KEY_SECRET", description="OSS access key secret"
    )
    region: str = Field(default="oss-cn-hangzhou", alias="OSS_REGION", description="OSS region")
    bucket: str = Field(default="yoyo-mall", alias="OSS_BUCKET", description="OSS bucket name")
    endpoint: Optional[str] = Field(
        default=None, alias="OSS_ENDPOINT", description="S3-compatible endpoint URL (derived from region if empty)"
    )
    base_url: Optional[str] = Field(
        default=None, alias="OSS_BASE_URL", description="Public base URL for stored objects (CDN or bucket domain)"
    )
    root_folder: str = Field(default="yoyo_mall", alias="OSS_ROOT_FOLDER", description="Key prefix for all uploads")
    max_image_mb: int = Field(default=10, alias="UPLOAD_MAX_IMAGE_MB", description="Maximum image upload size in MB")
    max_avatar_mb: int = Field(default=5, alias="UPLOAD_MAX_AVATAR_MB", description="Maximum avatar upload size in MB")

    model_config = {"populate_by_name": True}

    @property
    def endpoint_url(self) -> str:
        return self.endpoint or f"https://{self.region}.aliyuncs.com"

    @property
    def public_base_url(self) -> str:
        return (self.base_url or f"https://{self.bucket}.{self.region}.aliyuncs.com").rstrip("/")


class StripeConfig(BaseModel):
    """Stripe payment gateway configuration."""

    secret_key: Optional[str] = Field(default=None, alias="STRIPE_SECRET_KEY", description="Stripe secret API key")
    webhook_secret: Optional[str] = Field(
        default=None, alias="STRIPE_WEBHOOK_SECRET", description="Signing secret for Stripe webhook events"
    )
    currency: str = Field(default="usd", alias="STRIPE_CURRENCY", description="Default charge currency")

    model_config = {"populate_by_name": True}


class I18nConfig(BaseModel):
    """Translation file configuration."""

    locales_dir: Path = Field(
        default=PACKAGE_ROOT / "locales", alias="I18N_LOCALES_DIR", description="Directory holding locale folders"
    )
    default_locale: str = Field(default="zh-CN", alias="I18N_DEFAULT_LOCALE", description="Fallback locale")

    model_config = {"populate_by_name": True}


class MonitoringConfig(BaseModel):
    """Logfire tracing configuration."""

    enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED", description="Send traces and logs to Logfire")
    token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN", description="Logfire write token")
    service_name: str = Field(default="yoyo-mall-api", alias="LOGFIRE_SERVICE_NAME", description="Reported service name")
    environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT", description="Reported environment")
    sample_rate: float = Field(default=1.0, alias="LOGFIRE_SAMPLE_RATE", description="Head sampling rate (0-1)")
    trace_sqlalchemy: bool = Field(default=True, alias="LOGFIRE_TRACE_SQLALCHEMY", description="Trace database calls")
    trace_httpx: bool = Field(default=True, alias="LOGFIRE_TRACE_HTTPX", description="Trace outgoing HTTP calls")
    trace_fastapi: bool = Field(default=True, alias="LOGFIRE_TRACE_FASTAPI", description="Trace API endpoints")
    slow_request_ms: float = Field(
        default=1000, alias="SLOW_REQUEST_MS", description="Requests slower than this are logged as warnings"
    )

    model_config = {"populate_by_name": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", alias="YOYO_MALL_LOG_LEVEL", description="Root log level")
    format: str = Field(default="detailed", alias="LOG_FORMAT", description="simple, detailed or json")
    file_dir: str = Field(default="logs", alias="LOG_FILE_DIR", description="Directory for the log file")
    enable_file: bool = Field(default=False, alias="ENABLE_FILE_LOGGING", description="Write logs to a file")

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # YoYo Mall Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="YoYo Mall server host address to bind to",
        alias="YOYO_MALL_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="YoYo Mall server port number",
        alias="YOYO_MALL_SERVER_PORT",
    )
    environment: str = Field(
        default="development",
        description="Deployment environment (development, staging, production)",
        alias="ENVIRONMENT",
    )
    seed_admin_secret: Optional[str] = Field(
        default=None,
        description="Shared secret allowing admin bootstrap outside development",
        alias="SEED_ADMIN_SECRET",
    )
    seed_admin_password: str = Field(
        default="Admin123!",
        description="Password of the default admin account created by the seed command",
        alias="SEED_ADMIN_PASSWORD",
    )
    seed_user_password: str = Field(
        default="User123!",
        description="Password of the default customer account created by the seed command",
        alias="SEED_USER_PASSWORD",
    )

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: Optional[str] = Field(
        default=None,
        description="Async database connection URL; built from POSTGRES_* values when empty",
        alias="DATABASE_URL",
    )
    postgres_db: str = Field(default="yoyo_mall", alias="POSTGRES_DB")
    postgres_user: str = Field(default="yoyo", alias="POSTGRES_USER")
    postgres_password: str = Field(default="changeme", alias="POSTGRES_PASSWORD")
    postgres_host: str = Field(default="postgres", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")

    # =====================================================================
    # CORS Configuration
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["*"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    # =====================================================================
    # Auth Configuration
    # =====================================================================
    jwt_secret: str = Field(default="dev-insecure-jwt-secret", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expire_days: int = Field(default=30, alias="JWT_EXPIRE_DAYS")
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS")
    google_client_id: Optional[str] = Field(default=None, alias="GOOGLE_CLIENT_ID")
    google_tokeninfo_url: str = Field(default="https://oauth2.googleapis.com/tokeninfo", alias="GOOGLE_TOKENINFO_URL")

    # =====================================================================
    # Object Storage Configuration
    # =====================================================================
    oss_access_key_id: Optional[str] = Field(default=None, alias="OSS_ACCESS_KEY_ID")
    oss_access_key_secret: Optional[str] = Field(default=None, alias="OSS_ACCESS_KEY_SECRET")
    oss_region: str = Field(default="oss-cn-hangzhou", alias="OSS_REGION")
    oss_bucket: str = Field(default="yoyo-mall", alias="OSS_BUCKET")
    oss_endpoint: Optional[str] = Field(default=None, alias="OSS_ENDPOINT")
    oss_base_url: Optional[str] = Field(default=None, alias="OSS_BASE_URL")
    oss_root_folder: str = Field(default="yoyo_mall", alias="OSS_ROOT_FOLDER")
    upload_max_image_mb: int = Field(default=10, alias="UPLOAD_MAX_IMAGE_MB")
    upload_max_avatar_mb: int = Field(default=5, alias="UPLOAD_MAX_AVATAR_MB")

    # =====================================================================
    # Stripe Configuration
    # =====================================================================
    stripe_secret_key: Optional[str] = Field(default=None, alias="STRIPE_SECRET_KEY")
    stripe_webhook_secret: Optional[str] = Field(default=None, alias="STRIPE_WEBHOOK_SECRET")
    stripe_currency: str = Field(default="usd", alias="STRIPE_CURRENCY")

    # =====================================================================
    # I18n Configuration
    # =====================================================================
    i18n_locales_dir: Path = Field(default=PACKAGE_ROOT / "locales", alias="I18N_LOCALES_DIR")
    i18n_default_locale: str = Field(default="zh-CN", alias="I18N_DEFAULT_LOCALE")

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="YoYo Mall logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="YOYO_MALL_LOG_LEVEL",
    )
    log_format: str = Field(default="detailed", alias="LOG_FORMAT")
    log_file_dir: str = Field(default="logs", alias="LOG_FILE_DIR")
    enable_file_logging: bool = Field(default=False, alias="ENABLE_FILE_LOGGING")

    # =====================================================================
    # Monitoring Configuration
    # =====================================================================
    logfire_enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED")
    logfire_token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN")
    logfire_service_name: str = Field(default="yoyo-mall-api", alias="LOGFIRE_SERVICE_NAME")
    logfire_environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")
    logfire_sample_rate: float = Field(default=1.0, alias="LOGFIRE_SAMPLE_RATE")
    logfire_trace_sqlalchemy: bool = Field(default=True, alias="LOGFIRE_TRACE_SQLALCHEMY")
    logfire_trace_httpx: bool = Field(default=True, alias="LOGFIRE_TRACE_HTTPX")
    logfire_trace_fastapi: bool = Field(default=True, alias="LOGFIRE_TRACE_FASTAPI")
    slow_request_ms: float = Field(default=1000, alias="SLOW_REQUEST_MS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def postgres(self) -> PostgreSQLConfig:
        """Get PostgreSQL configuration from environment variables."""
        return PostgreSQLConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def database(self) -> str:
        """Effective database URL."""
        return self.database_url or self.postgres.url

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def auth(self) -> AuthConfig:
        """Get auth configuration from environment variables."""
        return AuthConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def storage(self) -> StorageConfig:
        """Get object storage configuration from environment variables."""
        return StorageConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def stripe(self) -> StripeConfig:
        """Get Stripe configuration from environment variables."""
        return StripeConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def i18n(self) -> I18nConfig:
        """Get translation configuration from environment variables."""
        return I18nConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration from environment variables."""
        return LoggingConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def monitoring(self) -> MonitoringConfig:
        """Get Logfire monitoring configuration from environment variables."""
        return MonitoringConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
