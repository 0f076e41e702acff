"""
Channel Audit Tool

Performs invariant checks on a ChannelData result against the bar series
it was computed from.

Invariants Checked:
- Nine finite levels at the reference position and at every window bar
- Levels descend from 100% to 0%
- Non-negative dispersion and half width
- No window bar past the last confirmed bar (multi-timeframe), and at most
  the extrapolated forming bar beyond it (single timeframe)
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from core.channel_config import ChannelMode
from core.channel_data import ChannelData
from core.channel_service import ChannelService

logger = logging.getLogger(__name__)

LEVEL_COUNT = 9


@dataclass
class ChannelAuditResult:
    """
    Results from a channel audit.

    Attributes:
        passed: Whether all invariants passed
        errors: List of critical errors (invariant violations)
        warnings: List of non-critical warnings
        stats: Summary statistics from the audit
    """
    passed: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        status = "PASSED" if self.passed else "FAILED"
        lines = [f"Channel Audit: {status}"]

        if self.errors:
            lines.append("\nErrors:")
            for err in self.errors:
                lines.append(f"  - {err}")

        if self.warnings:
            lines.append("\nWarnings:")
            for warn in self.warnings:
                lines.append(f"  ! {warn}")

        if self.stats:
            lines.append("\nStats:")
            for key, val in self.stats.items():
                lines.append(f"  {key}: {val}")

        return "\n".join(lines)


def _check_levels(label: str, levels: Sequence[float], errors: List[str], tol: float) -> None:
    if len(levels) != LEVEL_COUNT:
        errors.append(f"{label}: expected {LEVEL_COUNT} levels, got {len(levels)}")
        return
    if not all(math.isfinite(v) for v in levels):
        errors.append(f"{label}: non-finite level values {list(levels)}")
        return
    for k in range(LEVEL_COUNT - 1):
        if levels[k] < levels[k + 1] - tol:
            errors.append(f"{label}: level {k} ({levels[k]:.6g}) below level {k + 1} ({levels[k + 1]:.6g})")
            return


def audit_channel(
    data: ChannelData,
    service: ChannelService,
    strict: bool = True,
    tol: float = 1e-9,
) -> ChannelAuditResult:
    """
    Audit a channel result for invariant violations.

    Args:
        data: Result returned by service.calculate()
        service: Service that produced it (bars and config are read from it)
        strict: If True, warnings also fail the audit
        tol: Absolute tolerance for level ordering

    Returns:
        ChannelAuditResult with pass/fail status and details
    """
    errors: List[str] = []
    warnings: List[str] = []

    n_display = len(service.display)
    multi_timeframe = service.translator.multi_timeframe
    last_display = service.translator.last_historical_display_index()

    _check_levels("reference", data.reference_levels, errors, tol)
    for idx, levels in data.window_levels.items():
        _check_levels(f"bar {idx}", levels, errors, tol)

    if data.dispersion < 0:
        errors.append(f"Negative dispersion: {data.dispersion}")
    if data.half_width < 0:
        errors.append(f"Negative half width: {data.half_width}")

    indices = sorted(data.window_levels)
    if indices and indices[0] < 0:
        errors.append(f"Negative display index in window: {indices[0]}")

    if multi_timeframe:
        beyond = [i for i in indices if i > last_display]
        if beyond:
            errors.append(f"{len(beyond)} window bars past last confirmed bar {last_display}: {beyond[:5]}")
    else:
        forming = n_display - 1
        beyond = [i for i in indices if i > forming]
        if beyond:
            errors.append(f"{len(beyond)} window bars past the series end: {beyond[:5]}")
        if forming in data.window_levels and data.mode is not ChannelMode.ROLLING_PERIOD:
            errors.append("Forming bar has levels outside rolling period mode")
        if forming in data.window_levels and data.reference_index != forming - 1:
            errors.append(f"Forming bar extrapolated from reference {data.reference_index}")

    if not indices:
        warnings.append("Channel touches no display bars")
    elif (
        data.mode is ChannelMode.ROLLING_PERIOD
        and data.reference_index not in data.window_levels
        and (not multi_timeframe or data.reference_index <= last_display)
    ):
        # multi-timeframe references past the last confirmed bar are expected to be bare
        warnings.append(f"Reference index {data.reference_index} has no window levels")

    stats = {
        "reference_index": data.reference_index,
        "mode": data.mode.value,
        "window_bars": len(indices),
        "first_bar": indices[0] if indices else None,
        "last_bar": indices[-1] if indices else None,
        "half_width": round(data.half_width, 6),
        "dispersion": round(data.dispersion, 6),
        "multi_timeframe": multi_timeframe,
    }

    passed = not errors and (not strict or not warnings)
    if not passed:
        logger.warning("Channel audit failed with %d errors, %d warnings", len(errors), len(warnings))
    return ChannelAuditResult(passed=passed, errors=errors, warnings=warnings, stats=stats)
