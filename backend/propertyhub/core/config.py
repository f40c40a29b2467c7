from typing import Any, Dict, List, Optional, Union
import logging

from pydantic import AnyHttpUrl, Field, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    PROJECT_NAME: str = "PropertyHub"
    API_V1_STR: str = "/api/v1"
    # Must be overridden through .env or the environment in production
    SECRET_KEY: str = Field(
        default="dev-only-secret-key-please-change-in-production",
        description="JWT signing key"
    )
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    SQLITE_DATABASE_URI: str = "sqlite:///./propertyhub.db"

    # Default admin seeded on first start
    FIRST_ADMIN_EMAIL: str = "admin@propertyhub.co.za"
    FIRST_ADMIN_PASSWORD: str = "admin123"
    DEMO_ADMIN_EMAIL: str = "demo@propertyhub.co.za"

    # Company branding used on invoices and outbound email
    COMPANY_NAME: str = "PropertyHub Facility Services"
    COMPANY_ADDRESS: str = "1 Main Road, Cape Town, 8001"
    COMPANY_PHONE: str = "+27 21 000 0000"
    COMPANY_EMAIL: str = "info@propertyhub.co.za"
    COMPANY_VAT_NUMBER: str = ""
    INVOICE_PREFIX: str = "INV"
    BRAND_PRIMARY_COLOR: str = "#2D5016"
    BRAND_SECONDARY_COLOR: str = "#F4C430"

    # Email
    EMAIL_BACKEND: str = "console"  # smtp | console
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: str = "noreply@propertyhub.co.za"

    # Object storage (S3 compatible, e.g. MinIO)
    STORAGE_ENDPOINT_URL: Optional[str] = "http://localhost:9000"
    STORAGE_PUBLIC_URL: str = "http://localhost:9000"
    STORAGE_BUCKET: str = "property-management"
    STORAGE_ACCESS_KEY: str = "minioadmin"
    STORAGE_SECRET_KEY: str = "minioadmin"
    STORAGE_REGION: str = "us-east-1"
    STORAGE_URL_EXPIRY_SECONDS: int = 10 * 60

    # Scheduled jobs
    SCHEDULER_ENABLED: bool = True
    OVERDUE_SWEEP_HOUR: int = 1
    OVERDUE_SWEEP_MINUTE: int = 0
    CAMPAIGN_DISPATCH_MINUTES: int = 5

    # SARS defaults (2025/2026 tax year); /reports/sars/rates overrides are stored in system_config
    SARS_COMPANY_TAX_RATE: float = 27.0
    SARS_VAT_RATE: float = 15.0
    SARS_UIF_EMPLOYEE_RATE: float = 1.0
    SARS_UIF_EMPLOYER_RATE: float = 1.0
    SARS_UIF_MAX_EARNINGS: float = 17712.0
    SARS_SDL_RATE: float = 1.0
    SARS_SDL_THRESHOLD: float = 500000.0

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
logger.info(f"Loaded settings: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
