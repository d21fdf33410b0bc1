"""پیکربندی صریح تطبیق."""

from __future__ import annotations

from .config import MatchConfiguration, parse_settings_dict

__all__ = [
    "MatchConfiguration",
    "parse_settings_dict",
]
