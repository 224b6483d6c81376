from pydantic_settings import BaseSettings, SettingsConfigDict

class AppConfig(BaseSettings):
    servicebus_connection_string: str = ""
    default_queue: str = "default"
    auto_create_queues: bool = True
    receive_wait_seconds: float = 5.0

    worker_max_tries: int = 3
    worker_retry_delay: int = 0
    worker_sleep_seconds: float = 1.0

    port: int = 8000
    log_level: str = "INFO"
    
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

settings = AppConfig()
