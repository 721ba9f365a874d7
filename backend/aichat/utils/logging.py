import logging
import sys

# Client libraries that log every request or retry decision at INFO
NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai", "groq", "langchain", "google_genai")


def setup_logging(level: str = "INFO") -> None:
    """Configure application-wide logging.

    Safe to call again: basicConfig leaves existing handlers in place.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
