"""Test helper utilities for job board tests."""

from .factories import (
    NOW,
    TODAY,
    FakeTransport,
    make_app_config,
    make_env_config,
    make_faculty,
    make_posting,
    make_profile,
    make_saved_search,
    seed,
)

__all__ = [
    "NOW",
    "TODAY",
    "FakeTransport",
    "make_app_config",
    "make_env_config",
    "make_faculty",
    "make_posting",
    "make_profile",
    "make_saved_search",
    "seed",
]
