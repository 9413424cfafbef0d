import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR, HTTP_503_SERVICE_UNAVAILABLE
from ..schemas import RecommendRequest, RecommendResponse, RecommendationOut
from ..services.recommendation_service import RecommendationService
from ..data.base import FilterCriteria
from ..data.observations import ObservationStoreError
from ..core.security import rate_limit

logger = logging.getLogger(__name__)

router = APIRouter()

def service_dep(request: Request) -> RecommendationService:
    # Built once in the app lifespan; shares the stop index and its cache.
    return request.app.state.recommender

@router.post("/recommend", response_model=RecommendResponse)
async def post_recommend(
    body: RecommendRequest,
    _lim = Depends(rate_limit),           # Rate limiting
    svc: RecommendationService = Depends(service_dep),
):
    # day is matched exactly as stored; only the postcode is normalized
    criteria = FilterCriteria.build(day=body.day, time=body.time, postcode=body.postcode)
    if criteria.day is None or criteria.postcode is None:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Missing fields: day/postcode")

    try:
        rows = await svc.recommend(criteria)
    except ObservationStoreError:
        logger.exception("recommendation query failed")
        raise HTTPException(status_code=HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return {"results": [RecommendationOut.from_row(r) for r in rows]}

@router.get("/health")
async def health(request: Request):
    try:
        await request.app.state.store.ping()
    except ObservationStoreError:
        logger.exception("database ping failed")
        raise HTTPException(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return {"status": "ok", "stops_loaded": len(request.app.state.stop_index)}
