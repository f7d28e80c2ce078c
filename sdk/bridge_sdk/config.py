"""
Configuration for the Bridge client SDK.

Uses pydantic-settings for environment variable loading.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Client configuration loaded from environment."""

    # Remote authority
    api_url: str = Field(default="http://localhost:8000", description="Remote authority base URL")
    request_timeout: float = Field(default=30.0, description="HTTP request timeout seconds")

    # Session recovery backoff after an "already signed in" desync
    session_retry_delay: float = Field(default=0.3, description="Seconds to wait before the single retry")

    # Query retry policy (reads with retry enabled)
    query_retries: int = Field(default=3, description="Retries after the first failed fetch")
    query_retry_base_delay: float = Field(default=1.0, description="First retry delay seconds")
    query_retry_max_delay: float = Field(default=30.0, description="Retry delay cap seconds")

    # File ingestion
    ingest_chunk_size: int = Field(default=64 * 1024, description="Bytes read per chunk")

    # Profile validation
    school_email_domain: str = Field(
        default="@g.gcksp12.org",
        description="Required suffix for student school emails",
    )

    model_config = {"env_prefix": "BRIDGE_"}

    def retry_delay(self, attempt: int) -> float:
        """Backoff before retry number `attempt` (0-based), doubling up to the cap."""
        return min(self.query_retry_base_delay * (2**attempt), self.query_retry_max_delay)
