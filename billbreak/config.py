# billbreak/config.py
import os
import sys

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.0-flash")
MAX_IMAGE_SIZE_MB = int(os.getenv("MAX_IMAGE_SIZE_MB", "10"))
MAX_IMAGE_SIZE_BYTES = MAX_IMAGE_SIZE_MB * 1024 * 1024
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₹")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_gemini_config() -> tuple[str, str]:
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    if not GEMINI_API_KEY:
        raise ValueError("GEMINI_API_KEY environment variable not set. This key is required for genai.Client().")
    return GEMINI_API_KEY, os.getenv("GEMINI_MODEL_NAME", GEMINI_MODEL_NAME)


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Send loguru output to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level)
