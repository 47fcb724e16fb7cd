import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    def __init__(self):
        # Catalog source
        self.CATALOG_PATH = os.environ.get("CATALOG_PATH", "")
        self.CATALOG_URL = os.environ.get("CATALOG_URL", "")

        # Ingestion
        self.PROGRESS_INTERVAL = int(os.environ.get("PROGRESS_INTERVAL", "1000"))

        # Paging
        self.DEFAULT_PAGE_SIZE = int(os.environ.get("DEFAULT_PAGE_SIZE", "24"))
        self.MAX_PAGE_SIZE = int(os.environ.get("MAX_PAGE_SIZE", "100"))

        # Retry configuration
        self.MAX_RETRIES = int(os.environ.get("MAX_RETRIES", "3"))
        self.REQUEST_TIMEOUT = int(os.environ.get("REQUEST_TIMEOUT", "30"))
        self.RETRY_BACKOFF = float(os.environ.get("RETRY_BACKOFF", "1.5"))

        # Error tracking
        self.SENTRY_DSN = os.environ.get("SENTRY_DSN", "")
        self.ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

        # Application settings
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def has_sentry(self) -> bool:
        return bool(self.SENTRY_DSN)

    @property
    def has_catalog_source(self) -> bool:
        return bool(self.CATALOG_URL or self.CATALOG_PATH)

# Create an instance
config = Config()
