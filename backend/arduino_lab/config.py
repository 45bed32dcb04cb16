import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", "gpt-4o")
OPENAI_IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "gpt-image-1-mini")
OPENAI_API_KEY_FILE = os.getenv("OPENAI_API_KEY_FILE", "secrets/api_key.txt")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "300"))

INVENTORY_PAGE_SIZE = int(os.getenv("INVENTORY_PAGE_SIZE", "3"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
