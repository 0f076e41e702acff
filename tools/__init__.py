"""
Regression Channel Engine - Tools

Verification helpers for computed channels:
- audit_channel: Invariant checks on a ChannelData result

Usage:
    from tools import audit_channel, ChannelAuditResult

    data = service.calculate(index)
    result = audit_channel(data, service)
    if not result.passed:
        print(result)
"""

from .audit_channel import audit_channel, ChannelAuditResult


# Package version
__version__ = "0.1.0"


__all__ = [
    # Version
    "__version__",
    # Channel audit
    "audit_channel",
    "ChannelAuditResult",
]
