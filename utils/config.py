# utils/config.py
"""
Configuration class for the collaborator permissions report.
Loads settings from environment variables (and a local .env file).

When run as a GitHub Action, inputs arrive as INPUT_<NAME> variables and
take precedence over the plain variable of the same name.
"""
import os
import logging
from dotenv import load_dotenv
from typing import Optional

logger = logging.getLogger(__name__)

TRUTHY_VALUES = {"true", "1", "yes", "on"}
DEFAULT_COLLABORATORS_PAGE_SIZE = 100
MAX_COLLABORATORS_PAGE_SIZE = 100 # GitHub GraphQL connection limit
DEFAULT_GQL_TRANSPORT_RETRIES = 3


class ConfigurationError(ValueError):
    """Raised when the provided settings cannot be used to start a run."""
    pass


def _first_env(*names: str) -> Optional[str]:
    """Returns the first non-blank value among the given environment variables."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip():
            return value.strip()
    return None


class Config:
    """
    Configuration class to hold and validate configuration settings.
    """
    def __init__(self):
        load_dotenv()

        # --- Inputs ---
        self.TOKEN = _first_env("INPUT_TOKEN", "TOKEN", "GITHUB_TOKEN")
        self.ORGANIZATION = _first_env("INPUT_ORGANIZATION", "ORGANIZATION")
        self.ENTERPRISE = _first_env("INPUT_ENTERPRISE", "ENTERPRISE")
        self.POST_TO_ISSUE = (_first_env("INPUT_ISSUE", "ISSUE") or "false").lower() in TRUTHY_VALUES
        self.REPOSITORY = _first_env("GITHUB_REPOSITORY")
        self.GITHUB_GRAPHQL_URL = _first_env("GITHUB_GRAPHQL_URL") # GHES base URL; public GitHub if unset

        # --- Output ---
        self.OUTPUT_DIR = os.getenv("OutputDir", "data").strip()
        self.ARTIFACT_FILE_NAME = os.getenv("ArtifactFileName", "raw-data").strip()

        # --- Query tuning ---
        page_size_str = os.getenv("COLLABORATORS_PAGE_SIZE", str(DEFAULT_COLLABORATORS_PAGE_SIZE)).strip()
        try:
            self.COLLABORATORS_PAGE_SIZE = int(page_size_str)
            if not 1 <= self.COLLABORATORS_PAGE_SIZE <= MAX_COLLABORATORS_PAGE_SIZE:
                logger.warning(f"COLLABORATORS_PAGE_SIZE must be between 1 and {MAX_COLLABORATORS_PAGE_SIZE}. Defaulting to {DEFAULT_COLLABORATORS_PAGE_SIZE}.")
                self.COLLABORATORS_PAGE_SIZE = DEFAULT_COLLABORATORS_PAGE_SIZE
        except ValueError:
            logger.warning(f"Invalid COLLABORATORS_PAGE_SIZE: '{page_size_str}'. Defaulting to {DEFAULT_COLLABORATORS_PAGE_SIZE}.")
            self.COLLABORATORS_PAGE_SIZE = DEFAULT_COLLABORATORS_PAGE_SIZE

        retries_str = os.getenv("GITHUB_GQL_TRANSPORT_RETRIES", str(DEFAULT_GQL_TRANSPORT_RETRIES)).strip()
        try:
            self.GQL_TRANSPORT_RETRIES = int(retries_str)
            if self.GQL_TRANSPORT_RETRIES < 0:
                logger.warning(f"GITHUB_GQL_TRANSPORT_RETRIES cannot be negative. Defaulting to {DEFAULT_GQL_TRANSPORT_RETRIES}.")
                self.GQL_TRANSPORT_RETRIES = DEFAULT_GQL_TRANSPORT_RETRIES
        except ValueError:
            logger.warning(f"Invalid GITHUB_GQL_TRANSPORT_RETRIES: '{retries_str}'. Defaulting to {DEFAULT_GQL_TRANSPORT_RETRIES}.")
            self.GQL_TRANSPORT_RETRIES = DEFAULT_GQL_TRANSPORT_RETRIES

        # --- Logging ---
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip()
        self.LOG_FILE = os.getenv("LOG_FILE", "logs/collect_user_permissions.log").strip()

        # --- GitHub Actions runtime ---
        self.GITHUB_RUN_NUMBER = _first_env("GITHUB_RUN_NUMBER")
        self.GITHUB_OUTPUT = _first_env("GITHUB_OUTPUT")

    @property
    def JSON_EXPORT_FILEPATH(self) -> str:
        return os.path.join(self.OUTPUT_DIR, f"{self.ARTIFACT_FILE_NAME}.json")

    @property
    def CSV_EXPORT_FILEPATH(self) -> str:
        return os.path.join(self.OUTPUT_DIR, f"{self.ARTIFACT_FILE_NAME}.csv")

    @property
    def GITHUB_REST_URL(self) -> Optional[str]:
        """REST base URL matching GITHUB_GRAPHQL_URL, for PyGithub. None means public GitHub."""
        if not self.GITHUB_GRAPHQL_URL:
            return None
        base = self.GITHUB_GRAPHQL_URL.rstrip('/').replace('/api/graphql', '').replace('/api/v3', '').rstrip('/')
        return f"{base}/api/v3"

    def validate(self):
        """Raises ConfigurationError if the selected targets or options conflict."""
        if self.ORGANIZATION and self.ENTERPRISE:
            raise ConfigurationError("The organization and enterprise parameter are mutually exclusive.")
        if not self.ORGANIZATION and not self.ENTERPRISE:
            raise ConfigurationError("Either an organization or an enterprise must be provided.")
        if self.POST_TO_ISSUE and not self.REPOSITORY:
            raise ConfigurationError("Posting to an issue requires the target repository (GITHUB_REPOSITORY or --repository).")
        if self.REPOSITORY and self.POST_TO_ISSUE and '/' not in self.REPOSITORY:
            raise ConfigurationError(f"Repository '{self.REPOSITORY}' must be in 'owner/repo' form.")
