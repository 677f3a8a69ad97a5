# vidtube/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
import os
from typing import Optional

load_dotenv()

class Settings(BaseSettings):
    # --- Application Settings ---
    app_name: str = "VidTube"
    api_prefix: str = os.getenv("API_PREFIX", "/api/v1")
    cors_origins: str = os.getenv("CORS_ORIGINS", "*") # Через запятую
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # --- Database ---
    mongodb_url: str = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
    mongodb_db_name: str = os.getenv("MONGODB_DB_NAME", "vidtube")
    mongodb_timeout_ms: int = int(os.getenv("MONGODB_TIMEOUT_MS", 5000))

    # --- Security & Auth ---
    jwt_secret_key: str = os.getenv("JWT_SECRET_KEY", "default_jwt_secret_key_change_me")
    refresh_token_secret_key: str = os.getenv("REFRESH_TOKEN_SECRET_KEY", "default_refresh_secret_key_change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24)) # 1 день
    refresh_token_expire_minutes: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_MINUTES", 60 * 24 * 10)) # 10 дней
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # --- Cloudinary (asset host) ---
    cloudinary_cloud_name: Optional[str] = os.getenv("CLOUDINARY_CLOUD_NAME")
    cloudinary_api_key: Optional[str] = os.getenv("CLOUDINARY_API_KEY")
    cloudinary_api_secret: Optional[str] = os.getenv("CLOUDINARY_API_SECRET")
    cloudinary_api_url: str = os.getenv("CLOUDINARY_API_URL", "https://api.cloudinary.com/v1_1")
    upload_temp_dir: str = os.getenv("UPLOAD_TEMP_DIR", "./public/temp")

    # --- Search ---
    # Имя индекса Atlas Search; если не задано, используется обычный $text индекс
    search_index_name: Optional[str] = os.getenv("SEARCH_INDEX_NAME")

    # --- Redis & Rate Limiting ---
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    search_rate_limit_enabled: bool = os.getenv("SEARCH_RATE_LIMIT_ENABLED", "true").lower() == "true"
    search_rate_limit_count: int = int(os.getenv("SEARCH_RATE_LIMIT_COUNT", 30))
    search_rate_limit_window_seconds: int = int(os.getenv("SEARCH_RATE_LIMIT_WINDOW_SECONDS", 60 * 60)) # 1 час

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
