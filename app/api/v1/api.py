from fastapi import APIRouter
from app.api.v1.endpoints import pies, settlements

api_router = APIRouter()

api_router.include_router(pies.router, prefix="/pies", tags=["pies"])
api_router.include_router(settlements.router, prefix="/settlements", tags=["settlements"])
