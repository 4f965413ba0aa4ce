from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_mongodb
from app.db.mongo import MongoDatabase

router = APIRouter(tags=["health"])


@router.get("/db")
async def database_health(mongodb: MongoDatabase = Depends(get_mongodb)):
    """Check the database connection is working."""
    if await mongodb.ping():
        return {"database": "ok"}
    return JSONResponse(status_code=503, content={"database": "unavailable"})
