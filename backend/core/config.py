# backend/core/config.py
import os
from typing import List

from dotenv import load_dotenv


class Settings:
    """
    Setup environment variables.
        - INIT_MESSAGE_LIMIT how many messages a client gets on connect / join
        - API_MESSAGE_LIMIT how many messages the HTTP history endpoints return
        - MAX_HISTORY_PER_ROOM history cap per room, 0 keeps everything
        - SEND_QUEUE_SIZE outbound events buffered per connection before drops
    """

    # Load environment variables from the .env file
    load_dotenv()

    APP_TITLE: str = os.getenv("APP_TITLE", "Chat Rooms")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3001"))
    CORS_ORIGINS: List[str] = [
        origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
    ]

    INIT_MESSAGE_LIMIT: int = int(os.getenv("INIT_MESSAGE_LIMIT", "20"))
    API_MESSAGE_LIMIT: int = int(os.getenv("API_MESSAGE_LIMIT", "50"))
    MAX_HISTORY_PER_ROOM: int = int(os.getenv("MAX_HISTORY_PER_ROOM", "1000"))
    SEND_QUEUE_SIZE: int = int(os.getenv("SEND_QUEUE_SIZE", "256"))


settings = Settings()
