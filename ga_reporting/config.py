import os
from dataclasses import dataclass

from dotenv import load_dotenv
from google.oauth2 import service_account

DEFAULT_SCOPES = ("https://www.googleapis.com/auth/analytics.readonly",)


@dataclass(frozen=True)
class AnalyticsConfig:
    service_account_file: str
    scopes: tuple[str, ...] = DEFAULT_SCOPES


def load_config() -> AnalyticsConfig:
    """Load and validate configuration from environment variables (and .env)."""
    load_dotenv()
    missing = []

    def _get(name: str) -> str:
        val = os.environ.get(name, "").strip()
        if not val:
            missing.append(name)
            return ""
        return val

    service_account_file = _get("GA_SERVICE_ACCOUNT_FILE")

    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    raw_scopes = os.environ.get("GA_SCOPES", "")
    scopes = tuple(s.strip() for s in raw_scopes.split(",") if s.strip())

    return AnalyticsConfig(
        service_account_file=service_account_file,
        scopes=scopes or DEFAULT_SCOPES,
    )


def build_credentials(config: AnalyticsConfig) -> service_account.Credentials:
    return service_account.Credentials.from_service_account_file(
        config.service_account_file, scopes=list(config.scopes),
    )
