"""Configuration management for IS Lead Tracker MCP Server."""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List
from dotenv import load_dotenv


@dataclass
class Config:
    """Configuration settings for the IS Lead MCP server."""

    # Twenty CRM
    twenty_api_key: str
    twenty_api_url: str
    twenty_is_lead_object: str

    # Server
    server_name: str
    log_level: str

    # Rate limiting
    max_requests_per_minute: int

    @classmethod
    def from_env(cls, env_path: str = ".env") -> "Config":
        """
        Load configuration from .env file and environment variables.

        Args:
            env_path: Path to .env file (default: ".env")

        Returns:
            Config object with loaded settings
        """
        # Try to find .env file - check current dir, then project root
        env_file = None
        if Path(env_path).exists():
            env_file = env_path
        else:
            script_dir = Path(__file__).parent.parent
            env_candidate = script_dir / env_path
            if env_candidate.exists():
                env_file = str(env_candidate)

        if env_file:
            load_dotenv(env_file)

        twenty_api_key = os.getenv("TWENTY_API_KEY", "")
        twenty_api_url = os.getenv("TWENTY_API_URL", "https://api.twenty.com")
        twenty_is_lead_object = os.getenv("TWENTY_IS_LEAD_OBJECT", "isLeads")

        server_name = os.getenv("MCP_SERVER_NAME", "is-lead-tracker")
        log_level = os.getenv("LOG_LEVEL", "INFO")

        max_requests_per_minute = int(os.getenv(
            "TWENTY_API_MAX_REQUESTS_PER_MINUTE",
            "100"
        ))

        return cls(
            twenty_api_key=twenty_api_key,
            twenty_api_url=twenty_api_url,
            twenty_is_lead_object=twenty_is_lead_object,
            server_name=server_name,
            log_level=log_level,
            max_requests_per_minute=max_requests_per_minute
        )

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not self.twenty_api_key:
            errors.append(
                "TWENTY_API_KEY not set. Create an API key in Twenty "
                "(Settings > APIs & Webhooks) and add it to .env"
            )

        if not self.twenty_api_url.startswith(("http://", "https://")):
            errors.append(
                f"Invalid TWENTY_API_URL: {self.twenty_api_url}. "
                f"Must start with http:// or https://"
            )

        if not self.twenty_is_lead_object:
            errors.append("TWENTY_IS_LEAD_OBJECT must not be empty")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            errors.append(
                f"Invalid log level: {self.log_level}. "
                f"Must be one of: {', '.join(valid_log_levels)}"
            )

        if self.max_requests_per_minute <= 0:
            errors.append(
                f"Invalid max_requests_per_minute: {self.max_requests_per_minute}. "
                f"Must be greater than 0"
            )

        return errors

    def setup_logging(self):
        """Configure logging based on config settings. Logs go to stderr."""
        logging.basicConfig(
            level=getattr(logging, self.log_level.upper(), logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
