"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Google OAuth2 ───────────────────────────────────────────────────
    google_client_id: str = ""          # Google OAuth Web App client ID
    google_client_secret: str = ""      # Google OAuth Web App client secret
    oauth_redirect_uri: str = ""        # used when /oauth/callback omits redirect_uri

    # ── Tokens ──────────────────────────────────────────────────────────
    token_refresh_buffer_seconds: int = 300
    default_token_lifetime_seconds: int = 3600
    default_user_id: str = "default"    # used when the request carries no X-User-Id

    # ── Google Sheets ───────────────────────────────────────────────────
    spreadsheet_id: str = ""
    sheet_name: str = "Sheet1"
    sheet_id: int = 0                   # numeric id of the sheet tab, for row deletes
    entries_range: str = "A1:B1000"     # /get-entries
    sheet_read_range: str = "A1:Z1000"  # google-sheets-crud fetch, header included

    # ── Gmail ───────────────────────────────────────────────────────────
    gmail_max_results: int = 10

    # ── Airtable ────────────────────────────────────────────────────────
    airtable_base_url: str = "https://api.airtable.com/v0"

    # ── Outbound HTTP ───────────────────────────────────────────────────
    http_timeout_seconds: float = 30.0

    # ── Server ───────────────────────────────────────────────────────────
    environment: str = "development"
    port: int = 5000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: list = ["*"]

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


config = Settings()
