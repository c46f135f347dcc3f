"""API v1 router aggregation.

All v1 endpoints are prefixed with `/api/v1`:
- Lawyers (`/api/v1/lawyers/*`): slots and weekly availability
- Consultations (`/api/v1/consultations/*`): booking, lifecycle, sessions, messages
- Payments (`/api/v1/payments/*`): internal payment callbacks
"""

from fastapi import APIRouter

from consult_core.api.v1 import consultations, lawyers, payments

router = APIRouter(
    prefix="/api/v1",
    tags=["v1"],
    responses={
        404: {"description": "Not found"},
        422: {"description": "Validation error"},
        500: {"description": "Internal server error"},
    },
)

router.include_router(lawyers.router)
router.include_router(consultations.router)
router.include_router(payments.router)


@router.get("/", summary="API Information", tags=["v1"])
async def api_info():
    """API version and status. Public."""
    return {
        "version": "v1",
        "status": "active",
        "endpoints": {
            "lawyers": "/api/v1/lawyers",
            "consultations": "/api/v1/consultations",
            "payments": "/api/v1/payments",
        },
    }
