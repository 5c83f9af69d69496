from pydantic import BaseModel
import os

class Settings(BaseModel):
    database_url: str = os.getenv("DATABASE_URL", "postgresql://homedash:homedash_pw@db:5432/homedash")
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # "desc": larger priority listed first (dashboard behaviour), "asc": smaller first
    command_priority_order: str = os.getenv("COMMAND_PRIORITY_ORDER", "desc").lower()
    default_total_pins: int = int(os.getenv("DEFAULT_TOTAL_PINS", "30"))

settings = Settings()
