"""
API v1 router setup
All schedule routes require a JWT; role checks happen per endpoint.
"""
from fastapi import APIRouter

from gymsched.api.v1.gym import active_schedules, client_schedules, schedule_templates

api_v1_router = APIRouter()

# ============================================================================
# GYM SCHEDULE ROUTES (JWT authentication required)
# ============================================================================
api_v1_router.include_router(
    schedule_templates.router,
    # templates router already has "/templates" prefix
    prefix="/gym/schedules",
    tags=["Gym Schedules"]
)

api_v1_router.include_router(
    active_schedules.router,
    # active router already has "/active" prefix
    prefix="/gym/schedules",
    tags=["Gym Schedules"]
)

api_v1_router.include_router(
    client_schedules.router,
    prefix="/gym/schedules",
    tags=["Gym Schedules"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """
    API information and available endpoints.
    """
    return {
        "version": "1.0",
        "authentication": "JWT Bearer token required (issued by the auth service)",
        "roles": {
            "client": "browse schedules, join and leave timeslots",
            "coach": "read templates and the schedules they staff",
            "owner": "manage templates, active schedules and resets for their gym",
            "admin": "everything, across gyms"
        }
    }
