# rbac_admin/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = os.getenv("APP_NAME", "RBAC Admin API")
    env: str = os.getenv("ENV", "production")  # Set ENV=dev locally to see error detail
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for the admin panel and the public client
    CORS_ORIGINS: list[str] = _csv(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
    )

    # Token signing
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")  # Use a strong secret in production
    jwt_alg: str = os.getenv("JWT_ALG", "HS256")
    # Ordinary session: 7 days
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))
    # Impersonation session: fixed shorter window (24 hours)
    impersonation_token_expire_minutes: int = int(os.getenv("IMPERSONATION_TOKEN_EXPIRE_MINUTES", "1440"))

    # RBAC
    superadmin_role: str = os.getenv("SUPERADMIN_ROLE", "superadmin")  # Only this role may impersonate
    profile_role: str = os.getenv("PROFILE_ROLE", "mahasiswa")  # Role whose users carry a profile sub-record
    phone_country_code: str = os.getenv("PHONE_COUNTRY_CODE", "+62")

    @property
    def expose_error_detail(self) -> bool:
        """Internal error detail is only returned to clients in development."""
        return self.env.lower() in ("dev", "development")


settings = Settings()  # Instantiate configuration
