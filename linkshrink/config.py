from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """
    
    # Environment
    environment: str = "development"
    debug: bool = False  # DEBUG=true shows tracebacks in error responses
    log_level: str = "INFO"
    
    # Application
    app_name: str = "LinkShrink"
    app_version: str = "1.0.0"
    
    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    
    # Database
    database_url: str = "sqlite:///./linkshrink.db"
    
    # Short links
    base_url: str = "http://127.0.0.1:8000"
    short_code_length: int = 6
    max_retries: int = 5  # Attempts before giving up on a generated code
    custom_code_min_length: int = 3
    custom_code_max_length: int = 20
    bulk_max_urls: int = 50
    
    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 3600  # Cache TTL in seconds (1 hour)
    
    # Analytics
    analytics_max_days: int = 30
    analytics_top_n: int = 10
    analytics_recent_clicks: int = 50
    
    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
