from fastapi import APIRouter
from . import run_qa

api_router = APIRouter()
api_router.include_router(run_qa.router)
