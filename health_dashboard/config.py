from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Strava API
    STRAVA_CLIENT_ID: str = ""
    STRAVA_CLIENT_SECRET: str = ""
    STRAVA_ACCESS_TOKEN: str = ""
    STRAVA_REFRESH_TOKEN: str = ""
    STRAVA_REDIRECT_URI: str = ""

    # Oura API
    OURA_CLIENT_ID: str = ""
    OURA_CLIENT_SECRET: str = ""
    OURA_ACCESS_TOKEN: str = ""
    OURA_REFRESH_TOKEN: str = ""
    OURA_REDIRECT_URI: str = ""

    # URLs
    BASE_URL: str = ""  # e.g. https://health.example.com, empty = derive from request
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173"
    STATIC_DIR: str = "public"

    # LLM
    LLM_PROVIDER: str = "openrouter"  # openrouter, deepseek, openai, gemini
    LLM_MODEL: str = "google/gemini-flash-1.5"
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_REFERER: str = "http://localhost:3000"
    DEEPSEEK_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    GEMINI_API_KEY: str = ""

    # Rate limiting (AI routes only)
    AI_RATE_LIMIT: str = "10/minute"
    RATE_LIMIT_ENABLED: bool = True

    # Server
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def allowed_origins(self) -> list:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

settings = Settings()
