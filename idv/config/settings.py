from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process bootstrap configuration loaded from environment variables.

    Backend URLs, credentials and webhook targets are not here: they are
    hot-reloaded from the store as ServiceSettings.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "idv"
    db_username: str = "idv"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    session_poll_interval_seconds: int = 5
    max_concurrent_sessions: int = 4
    settings_refresh_interval_seconds: int = 30

    recognition_stream_timeout_seconds: float = 30.0
    biometric_submit_delay_seconds: float = 5.0

    webhook_timeout_seconds: float = 10.0
    webhook_test_timeout_seconds: float = 15.0
