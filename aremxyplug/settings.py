import os
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

# Load .env file variables into environment
load_dotenv(verbose=True)

_TRUTHY = ("1", "true", "yes", "on")


class Settings:
    """Application configuration settings loaded from environment variables."""

    # --- Provider Settings ---
    VTPASS_BASE_URL: str = "https://sandbox.vtpass.com/api"
    VTU_BASE_URL: str = "https://www.husmodataapi.com/api"

    # --- Helper Methods using os.getenv ---
    def get_database_url(self) -> Optional[str]:
        """Returns the primary DATABASE_URL, if set."""
        return os.getenv("DATABASE_URL")

    # --- Database settings Getters using os.getenv ---
    def get_postgres_user(self) -> str | None:
        return os.getenv("DB_USER")

    def get_postgres_password(self) -> str | None:
        return os.getenv("DB_PASSWORD")

    def get_postgres_db(self) -> str | None:
        return os.getenv("DB_NAME")

    def get_postgres_host(self) -> str | None:
        return os.getenv("DB_HOST")

    def get_postgres_port(self) -> int | None:
        """Returns the PostgreSQL port as an integer, or None if not set."""
        port_str = os.getenv("DB_PORT")
        if port_str is None:
            return None
        try:
            return int(port_str)
        except ValueError:
            raise ValueError("DB_PORT environment variable must be an integer.")

    # --- DB Pool Size Getters ---
    def get_main_db_pool_min_size(self) -> int:
        """Returns the minimum pool size for the main DB."""
        try:
            return int(os.getenv("MAIN_DB_POOL_MIN_SIZE", "1"))
        except ValueError:
            raise ValueError("MAIN_DB_POOL_MIN_SIZE environment variable must be an integer.")

    def get_main_db_pool_max_size(self) -> int:
        """Returns the maximum pool size for the main DB."""
        try:
            return int(os.getenv("MAIN_DB_POOL_MAX_SIZE", "10"))
        except ValueError:
            raise ValueError("MAIN_DB_POOL_MAX_SIZE environment variable must be an integer.")

    # --- Provider Getters ---
    def get_vtpass_base_url(self) -> str:
        """Returns the VTpass API base URL (electricity, TV and education pins)."""
        url = os.getenv("VTPASS_BASE_URL", self.VTPASS_BASE_URL).rstrip("/")
        parsed = urlparse(url)
        if not all([parsed.scheme, parsed.netloc]):
            raise ValueError(f"Invalid VTPASS_BASE_URL format: {url}")
        return url

    def get_vtpass_api_key(self) -> str | None:
        return os.getenv("VTPASS_API_KEY")

    def get_vtpass_secret_key(self) -> str | None:
        return os.getenv("VTPASS_SECRET_KEY")

    def get_vtu_base_url(self) -> str:
        """Returns the VTU API base URL (data and airtime)."""
        url = os.getenv("VTU_BASE_URL", self.VTU_BASE_URL).rstrip("/")
        parsed = urlparse(url)
        if not all([parsed.scheme, parsed.netloc]):
            raise ValueError(f"Invalid VTU_BASE_URL format: {url}")
        return url

    def get_vtu_api_token(self) -> str | None:
        return os.getenv("VTU_API_TOKEN")

    def get_provider_timeout_seconds(self) -> float:
        """Returns the read timeout applied to outbound provider calls."""
        try:
            return float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "60"))
        except ValueError:
            raise ValueError("PROVIDER_TIMEOUT_SECONDS environment variable must be a number.")

    def get_reject_duplicate_requests(self) -> bool:
        """Whether a replayed request_id is rejected (409) instead of returning the stored record."""
        return os.getenv("REJECT_DUPLICATE_REQUESTS", "false").lower() in _TRUTHY

    # --- Logging Settings ---
    def get_log_level(self, default: str = "INFO") -> str:
        """Gets the configured log level, defaulting if not set."""
        return os.getenv("LOG_LEVEL", default).upper()

    def get_loki_url(self) -> str | None:
        return os.getenv("LOKI_URL")

    # --- App Server Settings ---
    def get_app_host(self) -> str:
        return os.getenv("AREMXY_HOST", "0.0.0.0")  # nosec B104

    def get_app_port(self) -> int:
        try:
            return int(os.getenv("AREMXY_PORT", "8000"))
        except ValueError:
            raise ValueError("AREMXY_PORT environment variable must be an integer.")

    def get_app_reload(self) -> bool:
        return os.getenv("AREMXY_RELOAD", "false").lower() in _TRUTHY

    # --- Database DSN Helper Properties using Getters ---
    @property
    def base_dsn(self) -> str:
        """Base DSN without a specific database name.
        Raises ValueError if required DB settings are missing.
        """
        user = self.get_postgres_user()
        password = self.get_postgres_password()
        host = self.get_postgres_host()
        port = self.get_postgres_port()

        if not all([user, password, host, port]):
            missing = [
                name
                for name, val in [("USER", user), ("PASSWORD", password), ("HOST", host), ("PORT", port)]
                if not val
            ]
            raise ValueError(f"Missing required database settings ({', '.join(missing)}) for base_dsn")

        return f"postgresql://{user}:{password}@{host}:{port}"

    def get_db_dsn(self, db_name: str | None = None) -> str:
        """Returns the DSN for a specific database name, or the default DB_NAME.
        Raises ValueError if required DB settings or the target db_name are missing.
        """
        target_db = db_name or self.get_postgres_db()
        if not target_db:
            raise ValueError("Missing target database name (either provide db_name or set DB_NAME env var)")
        return f"{self.base_dsn}/{target_db}"

    def get_run_mode(self) -> str:
        """Returns the run mode, defaulting to 'prod' if not set."""
        return os.getenv("RUN_MODE", "prod")

    def dev_mode(self) -> bool:
        """Returns True if the run mode is 'dev', False otherwise."""
        return self.get_run_mode() == "dev"
