"""Shared API dependencies"""

from fastapi import HTTPException, Request

from kitchen_display.kitchen.screen import KitchenScreen
from kitchen_display.schemas.kitchen import MutationError, MutationOutcome

ERROR_STATUS = {
    MutationError.REJECTED: 409,
    MutationError.TIMEOUT: 504,
    MutationError.FAILURE: 502,
}


def get_screen(request: Request) -> KitchenScreen:
    """The kitchen screen started by the application lifespan"""
    screen = getattr(request.app.state, "screen", None)
    if screen is None:
        raise HTTPException(status_code=503, detail="Kitchen screen is not running")
    return screen


def raise_for_outcome(outcome: MutationOutcome) -> MutationOutcome:
    """Map a failed mutation onto its HTTP status"""
    if not outcome.success:
        raise HTTPException(
            status_code=ERROR_STATUS.get(outcome.error, 502),
            detail=outcome.message,
        )
    return outcome
