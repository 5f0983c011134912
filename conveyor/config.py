from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./recipes.db"
    LOG_LEVEL: str = "INFO"

    # Calculation model served by engine.calculate()
    MODEL_KEY: str = "sliderbed_v1"
    MODEL_VERSION_ID: str = "v1.12.0"
    MODEL_BUILD_ID: str = "local"

    # PCI tube stress: fail instead of warn when a tube exceeds its limit
    ENFORCE_PCI_CHECKS: bool = False

    # Drift report
    DRIFT_TOP_N: int = 10

    # CI blocking: only locked fixtures in these tiers fail the build.
    # List settings are read from the environment as JSON, e.g. CI_NEVER_BLOCK='["flaky-line"]'
    CI_BLOCKING_TIERS: List[str] = ["smoke"]
    CI_ALWAYS_BLOCK: List[str] = []
    CI_NEVER_BLOCK: List[str] = []

    class Config:
        env_file = ".env"


settings = Settings()
