from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for cron jobs and admin operations

    # Discogs
    discogs_consumer_key: Optional[str] = None
    discogs_consumer_secret: Optional[str] = None
    discogs_callback_url: str = "https://musicscan.app/auth/discogs/callback"
    discogs_token: Optional[str] = None  # personal token for public database calls
    discogs_user_agent: str = "MusicScan/1.0 +https://musicscan.app"

    # AI (OpenAI or any OpenAI-compatible gateway)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"

    # Resend
    resend_api_key: Optional[str] = None
    email_from: str = "MusicScan <noreply@musicscan.app>"

    # IndexNow / site
    indexnow_key: Optional[str] = None
    indexnow_endpoint: str = "https://api.indexnow.org/indexnow"
    site_host: str = "www.musicscan.app"
    site_url: str = "https://www.musicscan.app"

    # Facebook (falls back to the app_secrets table when unset)
    facebook_page_id: Optional[str] = None
    facebook_page_access_token: Optional[str] = None
    facebook_app_secret: Optional[str] = None
    facebook_graph_version: str = "v19.0"

    # AudD
    audd_api_token: Optional[str] = None

    # Price scraping fallback
    scraperapi_key: Optional[str] = None

    # Shop
    shop_shipping_cost: float = 4.95
    shop_free_shipping_threshold: float = 50.0

    # Cron
    cron_secret: Optional[str] = None
    scheduler_enabled: bool = False
    scheduler_tick_seconds: int = 60
    system_user_id: Optional[str] = None  # owner of rows created by background processors

    # App
    app_name: str = "musicscan-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173,https://www.musicscan.app"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
