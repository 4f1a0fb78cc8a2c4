"""Process settings via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Logging
    log_level: str = "warning"
    log_json: bool = False

    # Links attached to findings as "<docs_base_url>/<rule id>"; empty disables them
    docs_base_url: str = "https://github.com/Replikanti/flowlint-examples/tree/main"

    # Parallel file analysis (1 = sequential)
    max_workers: int = 1

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "FLOWLINT_",
        "extra": "ignore",
    }


settings = Settings()
