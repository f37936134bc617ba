"""
Configuration module for Casebook.
Loads settings from environment variables or .env file.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root (parent of casebook/ directory)
_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"
load_dotenv(_env_path)


class Config:
    """Application configuration."""

    # Storage backend: "local" or "github"
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "local")

    # Local backend settings
    CASES_DIR: Path = Path(os.getenv("CASES_DIR", "./data/cases"))

    # GitHub backend settings
    GITHUB_API_BASE: str = os.getenv("GITHUB_API_BASE", "https://api.github.com")
    GITHUB_OWNER: str = os.getenv("GITHUB_OWNER", "")
    GITHUB_REPO: str = os.getenv("GITHUB_REPO", "")
    GITHUB_CASES_PATH: str = os.getenv("GITHUB_CASES_PATH", "cases")
    GITHUB_BRANCH: str = os.getenv("GITHUB_BRANCH", "")
    GITHUB_TOKEN: str = os.getenv("GITHUB_TOKEN", "")
    GITHUB_TIMEOUT: float = float(os.getenv("GITHUB_TIMEOUT", "30"))

    # What to do when one document can't be read during a listing: "skip" or "fail"
    LIST_ERROR_POLICY: str = os.getenv("LIST_ERROR_POLICY", "skip")

    # API settings
    API_HOST: str = os.getenv("API_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")  # Required for /admin endpoints

    # Number of cases on the front page
    DEFAULT_LATEST_COUNT: int = int(os.getenv("DEFAULT_LATEST_COUNT", "6"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """Validate storage configuration."""
        backend = cls.STORAGE_BACKEND.lower()

        if backend not in ("local", "github"):
            raise ValueError(
                f"STORAGE_BACKEND must be one of: local, github. "
                f"Got: {backend}"
            )

        if backend == "github" and not (cls.GITHUB_OWNER and cls.GITHUB_REPO):
            raise ValueError(
                "GITHUB_OWNER and GITHUB_REPO must be set when using the GitHub backend"
            )

        if cls.LIST_ERROR_POLICY.lower() not in ("skip", "fail"):
            raise ValueError(
                f"LIST_ERROR_POLICY must be one of: skip, fail. "
                f"Got: {cls.LIST_ERROR_POLICY}"
            )

    @classmethod
    def get_backend_config(cls) -> dict:
        """Get constructor arguments for the active storage backend."""
        backend = cls.STORAGE_BACKEND.lower()

        if backend == "local":
            return {
                "backend": backend,
                "directory": cls.CASES_DIR,
            }
        elif backend == "github":
            return {
                "backend": backend,
                "owner": cls.GITHUB_OWNER,
                "repo": cls.GITHUB_REPO,
                "path": cls.GITHUB_CASES_PATH,
                "token": cls.GITHUB_TOKEN or None,
                "branch": cls.GITHUB_BRANCH or None,
                "api_base": cls.GITHUB_API_BASE,
                "timeout": cls.GITHUB_TIMEOUT,
            }

        raise ValueError(f"Unknown storage backend: {backend}")


# Singleton config instance
config = Config()
