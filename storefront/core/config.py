import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    APP_NAME: str = os.getenv("APP_NAME", "Praja Collections Storefront")
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "storefront")

    # Tokens are issued by the identity provider; we only verify them.
    AUTH_SECRET: str = os.getenv("AUTH_SECRET", "changeme")
    AUTH_ALGORITHM: str = os.getenv("AUTH_ALGORITHM", "HS256")

    GATEWAY_KEY_ID: str = os.getenv("GATEWAY_KEY_ID", "")
    GATEWAY_KEY_SECRET: str = os.getenv("GATEWAY_KEY_SECRET", "")
    GATEWAY_BASE_URL: str = os.getenv("GATEWAY_BASE_URL", "https://api.razorpay.com/v1")
    GATEWAY_TIMEOUT: float = float(os.getenv("GATEWAY_TIMEOUT", "10"))
    CURRENCY: str = os.getenv("CURRENCY", "INR")

    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: list = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


settings = Settings()
