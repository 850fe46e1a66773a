"""Pydantic configuration models for firstlink."""

import re
from enum import Enum
from pathlib import Path
from typing import Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

from ..links.link_extractors.protocols import ScopeRules

# "%" not followed by two hex digits
INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class ProfileName(str, Enum):
    """Built-in configuration profiles."""

    WIKIPEDIA = "wikipedia"
    BODY_CONTENT = "body-content"
    LOOSE = "loose"
    CUSTOM = "custom"


class CorpusConfig(BaseModel):
    """Where articles live and which part of an article holds its text."""

    base_url: str = Field(
        "https://en.wikipedia.org/wiki/",
        description="Base location every in-corpus article URL starts with",
    )
    container_tag: str = Field("div", description="Tag of the content container")
    container_attr: str = Field("id", description="Attribute identifying the content container")
    container_key: Optional[str] = Field(
        "mw-content-text",
        description="Attribute value of the content container (None = whole document)",
    )
    block_tag: Optional[str] = Field(
        "p",
        description="Text-block tag links must sit in (None = anywhere in the container)",
    )

    model_config = {"extra": "forbid"}

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"Base URL must be an absolute http(s) URL: {value!r}")
        if not value.endswith("/"):
            raise ValueError(f"Base URL must end with '/': {value!r}")
        return value

    @field_validator("container_tag", "block_tag")
    @classmethod
    def _lowercase_tag(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value

    @property
    def scope(self) -> ScopeRules:
        """Scoping rules for the link extractors."""
        return ScopeRules(
            container_tag=self.container_tag,
            container_attr=self.container_attr,
            container_key=self.container_key,
            block_tag=self.block_tag,
        )


class TraversalConfig(BaseModel):
    """Configuration for link acceptance and target matching."""

    policy: Literal["article", "permissive"] = Field(
        "article",
        description="article: in-corpus top-level articles only; permissive: anything unvisited",
    )
    target_mode: Literal["pattern", "exact"] = Field(
        "pattern",
        description="Match the target as a regular expression or as an exact title",
    )
    parser: Literal["stream", "soup"] = Field(
        "stream",
        description="Streaming tokenizer or buffered BeautifulSoup parse",
    )

    model_config = {"extra": "forbid"}


class NetworkConfig(BaseModel):
    """Configuration for HTTP client and network behavior."""

    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    user_agent: Optional[str] = Field(None, description="Custom User-Agent header")
    max_retries: int = Field(0, ge=0, description="Retry attempts when opening a document")
    connect_timeout: int = Field(10, ge=1, description="Connection timeout in seconds")
    read_timeout: int = Field(30, ge=1, description="Read timeout in seconds")
    rate_limit: float = Field(0.5, ge=0, description="Minimum seconds between requests to same host")

    model_config = {"extra": "forbid"}


class FirstLinkConfig(BaseModel):
    """
    Root configuration model for firstlink.

    Example:
        config = FirstLinkConfig(
            target="Philosophy",
            start="Vehicle",
            corpus=CorpusConfig(container_key="bodyContent"),
        )
    """

    target: str = Field(..., description="Target pattern (or exact title) matched against article titles")
    start: str = Field(..., description="Start article, relative to the corpus base URL")
    profile: ProfileName = Field(
        ProfileName.CUSTOM,
        description="Built-in profile to apply (wikipedia, body-content, loose, custom)",
    )

    # Nested configuration sections
    corpus: CorpusConfig = Field(default_factory=CorpusConfig)
    traversal: TraversalConfig = Field(default_factory=TraversalConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    @field_validator("start")
    @classmethod
    def _check_start(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Start article must not be empty")
        if INVALID_ESCAPE.search(value):
            raise ValueError(f"Start article has an invalid percent-escape: {value!r}")
        if any(ord(char) < 0x20 or ord(char) == 0x7F for char in value):
            raise ValueError(f"Start article contains control characters: {value!r}")
        return value

    @property
    def start_url(self) -> str:
        """Start article resolved against the corpus base URL."""
        return self.corpus.base_url + self.start.replace(" ", "_")

    def strip_base(self, url: str) -> str:
        """Article URL with the corpus base removed, for display."""
        base = self.corpus.base_url
        return url[len(base) :] if url.startswith(base) else url
