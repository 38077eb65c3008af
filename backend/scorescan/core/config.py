from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central settings object.
    Deployments provide env vars; locally you can use backend/.env.
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Gemini
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = ""
    GEMINI_TIMEOUT_SECONDS: float = 60.0

    # Product catalogs (Open Food Facts / Open Beauty Facts)
    OPEN_FOOD_FACTS_URL: str = "https://world.openfoodfacts.org"
    OPEN_BEAUTY_FACTS_URL: str = "https://world.openbeautyfacts.org"
    CATALOG_TIMEOUT_SECONDS: float = 15.0
    CATALOG_USER_AGENT: str = "ScoreScan/0.1 (product health lookup)"
    SEARCH_PAGE_SIZE: int = 20

    LOG_LEVEL: str = "INFO"

    # Versioning
    APP_VERSION: str = "0.1.0"
    BUILD_ID: str = "dev"


# other modules import this
settings = Settings()
