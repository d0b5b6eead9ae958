"""Configuration management using Pydantic Settings"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Payments gateway
    stripe_secret_key: str = ""
    stripe_price_pro: str = ""
    stripe_api_base: str = "https://api.stripe.com"

    # Storefront
    site_base_url: str = "https://lucentpay.co"
    invoice_currency: str = "gbp"

    # CORS
    allowed_origins: str = ""  # Comma separated explicit allow-list
    primary_domain: str = "lucentpay.co"
    storefront_suffix: str = "myshopify.com"

    # Service
    service_name: str = "lucentpay-checkout"
    log_level: str = "INFO"
    port: int = 4242
    expose_gateway_errors: bool = False

    # HTTP Client
    http_timeout_seconds: float = 10.0

    @property
    def allowed_origin_list(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def site_root(self) -> str:
        return self.site_base_url.rstrip("/")


settings = Settings()
