from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "Pie Ledger"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Shared-cost pie ledger bot for Slack"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # MongoDB
    MONGODB_URI: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "pie"

    # Slack
    SLACK_TOKEN: str = ""
    CHANNEL_ID: str = ""
    SLACK_API_URL: str = "https://slack.com/api"
    SLACK_TIMEOUT: float = 10.0
    SLICE_CONFIRMATIONS: bool = True

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
