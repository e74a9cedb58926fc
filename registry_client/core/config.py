from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://registry.terraform.io"
DEFAULT_USER_AGENT = "registry-client-python/0.1"


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    All settings can be configured via ``REGISTRY_*`` environment variables
    or a .env file. One instance belongs to one client; there is no global
    settings object.
    """

    # Registry endpoint
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    api_token: str = ""  # Sent as a bearer token when set (private registries)

    # HTTP client connection pool settings
    timeout: float = 30.0  # Overall default for every operation
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    write_timeout: float = 10.0
    pool_timeout: float = 5.0
    keepalive_expiry: float = 30.0
    max_connections: int = 100
    max_keepalive_connections: int = 10

    # Retry settings
    max_retries: int = 3  # Retries after the first attempt
    retry_wait_min: float = 1.0
    retry_wait_max: float = 30.0
    retry_exponential_base: float = 2.0

    # Rate limiting settings (token bucket shared by every call of the client)
    rate_limit_requests: int = 100
    rate_limit_period: float = 60.0

    # Listing and search settings
    search_max_pages: int = 100  # Circuit breaker for cursor traversal
    default_page_size: int = Field(default=50, le=100)

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        v = v.strip()
        if not v:
            raise ValueError("base URL cannot be empty")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"invalid base URL: {v}")
        return v.rstrip("/")

    @field_validator("rate_limit_requests", "search_max_pages", "default_page_size")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate count settings are positive."""
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @field_validator(
        "timeout",
        "connect_timeout",
        "read_timeout",
        "rate_limit_period",
        "retry_wait_min",
        "retry_wait_max",
    )
    @classmethod
    def validate_positive_duration(cls, v: float) -> float:
        """Validate durations are positive."""
        if v <= 0:
            raise ValueError("durations must be positive")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max retries cannot be negative")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    @model_validator(mode="after")
    def validate_retry_window(self) -> "Settings":
        if self.retry_wait_max < self.retry_wait_min:
            raise ValueError("retry_wait_max must not be smaller than retry_wait_min")
        return self

    model_config = SettingsConfigDict(env_prefix="REGISTRY_", env_file=".env", extra="ignore")
