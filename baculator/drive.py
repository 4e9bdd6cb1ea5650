"""Drive-risk advisory helpers.

This module provides conservative messaging for driving decisions based on
an estimated BACResult. It is educational only and never guarantees
legal/safe driving.
"""

from baculator.engine import BACResult

LEGAL_LIMIT_BAC = 0.05
CONSERVATIVE_LIMIT_BAC = 0.02


def _wait_text(hours: float, capped: bool) -> str:
    if capped:
        return f"more than {hours:.0f}h"
    return f"about {max(0.1, round(hours, 1))}h"


def get_drive_advice(result: BACResult, legal_limit: float = LEGAL_LIMIT_BAC) -> dict:
    """Return conservative drive-risk guidance from an evaluated result."""
    bac_now = result.current_bac

    if bac_now >= legal_limit:
        return {
            "status": "do_not_drive",
            "title": "Above legal limit",
            "message": f"Estimated BAC is at or above {legal_limit:.2f}%. Do not drive.",
            "action": f"Use a rideshare, taxi, or sober driver. Below the limit in {_wait_text(result.time_to_legal_hours, result.legal_capped)}.",
            "legal_limit_bac": legal_limit,
        }

    if result.is_rising and result.peak_bac >= legal_limit:
        return {
            "status": "do_not_drive",
            "title": "Rising toward the limit",
            "message": "Recent drinks are still absorbing and will push BAC over the limit.",
            "action": f"Do not drive. Wait {_wait_text(result.time_to_legal_hours, result.legal_capped)} and recheck.",
            "legal_limit_bac": legal_limit,
        }

    if bac_now >= CONSERVATIVE_LIMIT_BAC:
        return {
            "status": "do_not_drive",
            "title": "Alcohol still present",
            "message": "Estimated BAC is under the limit but not near zero. Driving is still risky.",
            "action": f"Do not drive. Wait {_wait_text(result.time_to_sober_hours, result.sober_capped)} and recheck.",
            "legal_limit_bac": legal_limit,
        }

    if bac_now > 0 or result.is_rising:
        return {
            "status": "caution",
            "title": "Residual alcohol",
            "message": "Estimated BAC is very low but not zero.",
            "action": "Safest choice is still not to drive.",
            "legal_limit_bac": legal_limit,
        }

    return {
        "status": "ok",
        "title": "No alcohol in the estimate",
        "message": "Estimated BAC is 0.000 right now.",
        "action": "If you have not consumed alcohol, impairment risk is lower.",
        "legal_limit_bac": legal_limit,
    }
