import os
from dotenv import load_dotenv

load_dotenv()

MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017/shift_integrity")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]


def validate_config() -> None:
    missing = []
    if not MONGODB_URL:
        missing.append("MONGODB_URL")
    if not JWT_SECRET_KEY:
        missing.append("JWT_SECRET_KEY")

    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}. "
            "Please set these in your .env file."
        )
