from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "CRM Server"
    DATABASE_URL: str = "sqlite:///./crm_management.db"

    # Auth Config
    JWT_SECRET: str = "crm_super_admin_secret_key"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    # When False, tokens and sessions stay valid past their expiry until revoked
    ENFORCE_TOKEN_EXPIRY: bool = True

    # Initial super admin, seeded on startup
    ADMIN_USERNAME: str = "superadmin"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_EMAIL: str = "superadmin@crm.local"

    # Bind address for `crm-server`
    HOST: str = "127.0.0.1"
    PORT: int = 3001

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://localhost:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env")

settings = Settings()
