from fastapi import APIRouter

from client_records.api.routes import clients, utils

api_router = APIRouter()
api_router.include_router(clients.router)
api_router.include_router(utils.router)
