import os
from pathlib import Path
from dotenv import load_dotenv; load_dotenv()


PACKAGE_ROOT = Path(__file__).resolve().parents[1]
PROJECT_ROOT = PACKAGE_ROOT.parent


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    # Server
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "3000"))
    PUBLIC_DIR: Path = Path(os.getenv("PUBLIC_DIR", str(PROJECT_ROOT / "public"))).resolve()
    CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    SUPPRESS_POLL_ACCESS_LOGS: bool = _env_bool("SUPPRESS_POLL_ACCESS_LOGS", "true")
    MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", "1000000"))

    # Job table (seconds)
    JOB_TTL_SEC: int = int(os.getenv("JOB_TTL_SEC", "1800"))          # 30 min
    SWEEP_INTERVAL_SEC: int = int(os.getenv("SWEEP_INTERVAL_SEC", "60"))

    # Simulated generation latency (ms)
    TEXT_DELAY_MIN_MS: int = int(os.getenv("TEXT_DELAY_MIN_MS", "350"))
    TEXT_DELAY_MAX_MS: int = int(os.getenv("TEXT_DELAY_MAX_MS", "600"))
    IMAGE_DELAY_MIN_MS: int = int(os.getenv("IMAGE_DELAY_MIN_MS", "220"))
    IMAGE_DELAY_MAX_MS: int = int(os.getenv("IMAGE_DELAY_MAX_MS", "500"))

    # Stock photo placeholder service
    IMAGE_BASE_URL: str = os.getenv("IMAGE_BASE_URL", "https://picsum.photos").rstrip("/")
    IMAGE_SIZE: int = int(os.getenv("IMAGE_SIZE", "1024"))

    # Metadata attached to every completed result
    APP_AUTHOR: str = os.getenv("APP_AUTHOR", "Carousel Studio")
    APP_VERSION: str = os.getenv("APP_VERSION", "v2")

    # Client
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://127.0.0.1:3000").rstrip("/")
    POLL_INTERVAL_MS: int = int(os.getenv("POLL_INTERVAL_MS", "350"))
    POLL_TIMEOUT_SEC: float = float(os.getenv("POLL_TIMEOUT_SEC", "15"))
    HTTP_TIMEOUT_SEC: float = float(os.getenv("HTTP_TIMEOUT_SEC", "30"))
    EXPORT_DIR: Path = Path(os.getenv("EXPORT_DIR", "exports"))
    PREFS_PATH: Path = Path(os.getenv("PREFS_PATH", str(Path.home() / ".carousel_studio" / "prefs.json")))
    ASSET_CACHE_DIR: Path = Path(os.getenv("ASSET_CACHE_DIR", str(Path.home() / ".carousel_studio" / "cache")))
    ASSET_CACHE_VERSION: str = os.getenv("ASSET_CACHE_VERSION", "carousel-ai-v4")


settings = Settings()
