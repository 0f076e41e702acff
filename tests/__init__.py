"""
Regression Channel Engine - Test Suite

SAFE TESTS (run by default, mock data only):
- test_bars.py                         - Bar series, validation, resampling
- test_index_mapping.py                - Timestamp/index alignment and caches
- test_regressions.py                  - Regression strategies and factory
- test_config_and_cache.py             - Config validation, profiles, LRU cache
- test_channel_service.py              - Channel calculation end to end
- test_regression_channel_context.py   - DataFrame adapter, no lookahead
- test_tools_init.py                   - Audit tool, logging, timeframes

Usage:
    pytest tests/ -v
    pytest tests/ -m slow -v
"""

# Package version
__version__ = "0.1.0"

# Manual-only test markers
MANUAL_MARKERS = ["manual", "slow", "integration"]
