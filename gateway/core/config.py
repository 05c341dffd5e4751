import os

class Settings:
    # Rate limiting (fixed window, per client key)
    RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "10"))
    RATE_LIMIT_WINDOW_SECONDS: float = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    RATE_LIMIT_SWEEP_INTERVAL_SECONDS: float = float(os.getenv("RATE_LIMIT_SWEEP_INTERVAL_SECONDS", "300"))

    # Outbound fetch
    FETCH_TIMEOUT_SECONDS: float = float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))
    MAX_RESPONSE_BYTES: int = int(os.getenv("MAX_RESPONSE_BYTES", str(5 * 1024 * 1024)))
    MAX_URL_LENGTH: int = int(os.getenv("MAX_URL_LENGTH", "500"))
    USER_AGENT: str = os.getenv("USER_AGENT", "Mozilla/5.0 (compatible; WebFetchGateway/1.0)")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

settings = Settings()
