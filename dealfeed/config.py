"""Application configuration via Pydantic Settings."""

from typing import Dict, List

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SOURCE_MODES = ("live", "best_effort", "synthetic", "disabled")


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # App
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = ""  # Empty means INFO in debug, WARNING otherwise

    # eBay Browse API (token lifecycle is owned by the auth service)
    EBAY_ACCESS_TOKEN: str = ""
    EBAY_MARKETPLACE_ID: str = "EBAY_US"

    # Sources
    ENABLED_SOURCES: str = "ebay,ebay-web,mercari,facebook,offerup"
    # Comma-separated "platform=mode" pairs, mode in SOURCE_MODES
    SOURCE_MODES: str = "mercari=best_effort,facebook=best_effort,offerup=best_effort"
    # Comma-separated "platform=rpm" pairs overriding adapter defaults
    SOURCE_RPM: str = ""

    # Timeouts and horizons
    SCRAPER_TIMEOUT_SECONDS: float = 10.0
    API_TIMEOUT_SECONDS: float = 6.0
    DEFAULT_HORIZON_SECONDS: int = 24 * 60 * 60
    DEFAULT_PER_SOURCE_LIMIT: int = 5
    MAX_PER_SOURCE_LIMIT: int = 50

    # Caller-side search budget (per client, sliding window)
    SEARCH_RATE_LIMIT: int = 30
    SEARCH_RATE_WINDOW_SECONDS: int = 60
    # Comma-separated peer addresses allowed to set X-Forwarded-For
    TRUSTED_PROXIES: str = ""

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    @model_validator(mode="after")
    def check_source_modes(self) -> "Settings":
        """Reject unknown modes early instead of silently disabling a source."""
        for platform, mode in self.get_source_modes().items():
            if mode not in SOURCE_MODES:
                raise ValueError(f"Unknown mode '{mode}' for source '{platform}'")
        return self

    def get_enabled_sources(self) -> List[str]:
        """Parse ENABLED_SOURCES into a list of platform names.

        Returns:
            Platform names in configured order, empty if none
        """
        if not self.ENABLED_SOURCES:
            return []
        return [s.strip() for s in self.ENABLED_SOURCES.split(",") if s.strip()]

    def get_source_modes(self) -> Dict[str, str]:
        """Parse SOURCE_MODES into a platform -> mode mapping."""
        return _parse_pairs(self.SOURCE_MODES)

    def get_source_rpm(self) -> Dict[str, int]:
        """Parse SOURCE_RPM into a platform -> requests-per-minute mapping."""
        return {k: int(v) for k, v in _parse_pairs(self.SOURCE_RPM).items()}

    def get_trusted_proxies(self) -> List[str]:
        return [p.strip() for p in self.TRUSTED_PROXIES.split(",") if p.strip()]

    def get_log_level(self) -> str:
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "INFO" if self.DEBUG else "WARNING"


def _parse_pairs(raw: str) -> Dict[str, str]:
    pairs: Dict[str, str] = {}
    for chunk in raw.split(","):
        if "=" not in chunk:
            continue
        key, value = chunk.split("=", 1)
        if key.strip():
            pairs[key.strip()] = value.strip()
    return pairs


settings = Settings()
