"""
Configurações da aplicação usando Pydantic
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configurações globais da aplicação"""

    # Ambiente
    APP_ENV: str = "dev"

    # Monitoring
    LOG_LEVEL: str = "INFO"

    # Redis & Queue
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_MAX_CONNECTIONS: int = 100
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    # WhatsApp Cloud API (Meta)
    WHATSAPP_ACCESS_TOKEN: str = ""
    WHATSAPP_PHONE_NUMBER_ID: str = ""
    WHATSAPP_API_VERSION: str = "v22.0"
    WHATSAPP_TIMEOUT_SECONDS: float = 30.0

    # Campanhas
    CAMPAIGN_TTL_DAYS: int = 45
    CAMPAIGN_LIST_MAX: int = 300
    CAMPAIGN_ERRORS_MAX: int = 200
    CAMPAIGN_WINDOW_FETCH_MAX: int = 20000

    # Alertas de sistema
    ALERTS_MAX: int = 300
    ALERTS_TTL_DAYS: int = 7

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignora campos extras do .env

    @property
    def campaign_ttl_seconds(self) -> int:
        """TTL aplicado às estruturas de campanha"""
        return self.CAMPAIGN_TTL_DAYS * 24 * 60 * 60

    @property
    def alerts_ttl_seconds(self) -> int:
        return self.ALERTS_TTL_DAYS * 24 * 60 * 60

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.WHATSAPP_ACCESS_TOKEN and self.WHATSAPP_PHONE_NUMBER_ID)


settings = Settings()
