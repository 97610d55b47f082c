# -*- coding: utf-8 -*-
"""
tests.property package bootstrap.

Hypothesis profiles for the shieldpool property tests. Every example runs
pure-Python Poseidon, so example counts stay modest.

- HYPOTHESIS_PROFILE=dev|ci|fast
- CI=true picks 'ci' when HYPOTHESIS_PROFILE is unset
"""
from __future__ import annotations

import os
from typing import Final

from hypothesis import HealthCheck, Verbosity, given, settings
from hypothesis import strategies as st

settings.register_profile(
    "dev",
    settings(
        max_examples=30,
        deadline=None,
        suppress_health_check=(HealthCheck.too_slow,),
        verbosity=Verbosity.normal,
    ),
)

settings.register_profile(
    "ci",
    settings(
        max_examples=60,
        deadline=None,
        suppress_health_check=(HealthCheck.too_slow,),
        verbosity=Verbosity.verbose,
        derandomize=True,
    ),
)

settings.register_profile(
    "fast",
    settings(max_examples=10, deadline=None, suppress_health_check=(HealthCheck.too_slow,)),
)


def _env_truthy(name: str) -> bool:
    v = os.getenv(name)
    return (v or "").lower() not in ("", "0", "false", "no", "off")


_active: Final[str] = os.getenv("HYPOTHESIS_PROFILE") or ("ci" if _env_truthy("CI") else "dev")
settings.load_profile(_active)

__all__ = ["given", "settings", "st"]
