"""Built-in configuration profiles for common corpus layouts."""

from __future__ import annotations

from typing import Any

from .config import FirstLinkConfig, ProfileName

PROFILES: dict[ProfileName, dict[str, Any]] = {
    ProfileName.WIKIPEDIA: {
        # Article prose lives in paragraphs under #mw-content-text
        "corpus": {
            "container_key": "mw-content-text",
            "block_tag": "p",
        },
        "traversal": {
            "policy": "article",
        },
    },
    ProfileName.BODY_CONTENT: {
        # Older skins wrap the article in #bodyContent
        "corpus": {
            "container_key": "bodyContent",
            "block_tag": "p",
        },
    },
    ProfileName.LOOSE: {
        # First unvisited link anywhere in the document
        "corpus": {
            "container_key": None,
            "block_tag": None,
        },
        "traversal": {
            "policy": "permissive",
        },
    },
    ProfileName.CUSTOM: {
        # No overrides - use explicit config
    },
}


def apply_profile(config: FirstLinkConfig) -> FirstLinkConfig:
    """
    Apply profile defaults to config, preserving user overrides.

    Profile values override Pydantic defaults, but values the user set
    explicitly take precedence over profile values.

    Args:
        config: The configuration with a profile specified

    Returns:
        A new FirstLinkConfig with profile defaults applied

    Example:
        >>> config = FirstLinkConfig(target="Car", start="Vehicle", profile=ProfileName.LOOSE)
        >>> apply_profile(config).traversal.policy
        'permissive'
    """
    if config.profile == ProfileName.CUSTOM:
        return config

    profile_overrides = PROFILES.get(config.profile, {})
    if not profile_overrides:
        return config

    config_dict = config.model_dump()

    for section, overrides in profile_overrides.items():
        current = getattr(config, section)
        explicit = current.model_fields_set
        for key, value in overrides.items():
            if key not in explicit:
                config_dict[section][key] = value

    return FirstLinkConfig.model_validate(config_dict)
