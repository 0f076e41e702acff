# core/profiles.py
"""
Named channel presets.
Each profile is a set of ChannelConfig field values.
"""

from typing import Any, Dict, Optional

from core.channel_config import ChannelConfig


PROFILES: Dict[str, Dict[str, Any]] = {
    # ==========================================================================
    # STANDARD: 100-bar linear channel, 2x dispersion
    # ==========================================================================
    "standard": {
        "period": 100,
        "family": "linear",
        "width": 2.0,
        "multi_timeframe": False,
    },

    # ==========================================================================
    # SCALP: short window, tight bands
    # ==========================================================================
    "scalp": {
        "period": 30,
        "family": "weighted",   # recent bars dominate
        "width": 1.5,
        "multi_timeframe": False,
    },

    # ==========================================================================
    # SWING: curved fit over a longer window
    # ==========================================================================
    "swing": {
        "period": 200,
        "family": "polynomial",
        "degree": 2,
        "width": 2.0,
        "multi_timeframe": False,
    },

    # ==========================================================================
    # HTF_OVERLAY: 4h channel drawn over an intraday chart
    # ==========================================================================
    "htf_overlay": {
        "period": 50,
        "family": "linear",
        "width": 2.0,
        "multi_timeframe": True,
        "timeframe": "4h",
    },

    # ==========================================================================
    # SMOOTH: LOWESS band, robust to spikes
    # ==========================================================================
    "smooth": {
        "period": 120,
        "family": "lowess",
        "width": 2.5,
        "multi_timeframe": False,
    },
}


def get_profile(name: str) -> Optional[Dict[str, Any]]:
    """
    Get a profile by name.

    Args:
        name: Profile name

    Returns:
        Copy of the profile dictionary or None if not found
    """
    profile = PROFILES.get(name)
    return dict(profile) if profile is not None else None


def list_profiles() -> list:
    """Return list of available profile names."""
    return list(PROFILES.keys())


def config_from_profile(name: str, **overrides) -> ChannelConfig:
    """Build a validated ChannelConfig from a profile plus field overrides."""
    profile = get_profile(name)
    if profile is None:
        raise ValueError(f"Unknown profile {name!r}. Available: {list_profiles()}")
    profile.update(overrides)
    return ChannelConfig(**profile)
