import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class PaymentSettings(BaseModel):
    paystack_secret_key: Optional[str] = Field(default=os.getenv("PAYSTACK_SECRET_KEY"))
    paystack_base_url: str = Field(default=os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co"))
    callback_url: Optional[str] = Field(default=os.getenv("PAYMENT_CALLBACK_URL"))
    timeout_seconds: int = int(os.getenv("PAYMENT_TIMEOUT_SECONDS", "30"))

class Config(BaseModel):
    app_name: str = "FacilityHub API"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./facilityhub.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))  # 24 hours
    refresh_token_expire_days: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
    encryption_key: str = os.getenv("ENCRYPTION_KEY", "")

    # Payments
    payments: PaymentSettings = PaymentSettings()
    default_currency: str = os.getenv("DEFAULT_CURRENCY", "GHS")
    platform_fee_percent: float = float(os.getenv("PLATFORM_FEE_PERCENT", "5"))

    # Uploads
    upload_dir: str = os.getenv("UPLOAD_DIR", "uploads")
    max_upload_size_mb: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
    document_storage_limit_mb: int = int(os.getenv("DOCUMENT_STORAGE_LIMIT_MB", "1024"))

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:3001,"
                "http://127.0.0.1:3000,http://127.0.0.1:3001",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_login: str = os.getenv("RATE_LIMIT_LOGIN", "10/minute")

    # Platform owner seeded at startup when both are set
    super_admin_email: Optional[str] = os.getenv("SUPER_ADMIN_EMAIL")
    super_admin_password: Optional[str] = os.getenv("SUPER_ADMIN_PASSWORD")

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def document_storage_limit_bytes(self) -> int:
        return self.document_storage_limit_mb * 1024 * 1024

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    _critical_missing = []
    if "dev-only" in settings.secret_key or "change-it" in settings.secret_key:
        _critical_missing.append("SECRET_KEY")
    if not settings.encryption_key:
        _critical_missing.append("ENCRYPTION_KEY")
    if not settings.payments.paystack_secret_key:
        _critical_missing.append("PAYSTACK_SECRET_KEY")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set for non-development environments: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
else:
    if "dev-only" in settings.secret_key:
        _logger.warning("⚠ Using insecure default SECRET_KEY; only acceptable in development.")
