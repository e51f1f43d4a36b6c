# backend/core/config.py
import os
from dotenv import load_dotenv

class Settings:
    """
    Setup environment variables.
        - APP_TITLE the title reported by the API
        - CLIENT_URL the browser origin allowed by CORS
        - HOST / PORT where uvicorn binds when run directly
        - LOG_LEVEL root log level (DEBUG shows every keystroke preview)
    """

    # Load environment variables from the .env file
    load_dotenv()

    APP_TITLE: str = os.getenv("APP_TITLE", "Turn Chat")
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:3000")

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3001"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
