"""Health endpoint: liveness of both stores."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from ..core.monitoring import HealthChecker
from ..dependencies import get_health_checker
from ..schemas import HealthOut

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthOut,
    responses={503: {"model": HealthOut}},
)
def health(checker: HealthChecker = Depends(get_health_checker)):
    """200 when the database and Redis both answer, 503 otherwise."""
    status = checker.get_status()
    body = HealthOut(**status.to_dict())
    return JSONResponse(
        status_code=200 if status.healthy else 503,
        content=jsonable_encoder(body),
    )
