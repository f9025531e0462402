from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    PROJECT_NAME: str = "WFS3Words"
    PROJECT_DESCRIPTION: str = "OGC Web Feature Service for What3Words location data"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # What3Words API Settings
    W3W_API_KEY: str = ""
    W3W_BASE_URL: str = "https://api.what3words.com/v3/"
    W3W_TIMEOUT_SECONDS: float = 30.0
    W3W_DEFAULT_LANGUAGE: str = "en"
    W3W_MAX_CONCURRENCY: int = 8

    # WFS service metadata
    WFS_SERVICE_TITLE: str = "What3Words WFS Service"
    WFS_SERVICE_ABSTRACT: str = (
        "OGC Web Feature Service providing access to What3Words location data"
    )
    WFS_KEYWORDS: str = "WFS,What3Words,OGC,Location"
    WFS_FEES: str = "none"
    WFS_ACCESS_CONSTRAINTS: str = "none"
    WFS_PROVIDER_NAME: str = "WFS3Words"
    WFS_PROVIDER_SITE: str = ""
    WFS_CONTACT_PERSON: str = ""
    WFS_CONTACT_EMAIL: str = ""
    WFS_SERVICE_URL: str = ""

    # WFS GetFeature Settings
    WFS_DEFAULT_VERSION: str = "2.0.0"
    WFS_MAX_FEATURES: int = 1000
    WFS_DEFAULT_GRID_DENSITY: float = 100.0  # points per degree, ~1.1 km at equator

    # Caching Settings (not wired into the request pipeline)
    WFS_ENABLE_CACHING: bool = True
    WFS_CAPABILITIES_CACHE_MINUTES: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
