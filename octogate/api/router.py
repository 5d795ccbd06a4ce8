"""Main API router."""

from fastapi import APIRouter

from octogate.api.account import router as account_router

api_router = APIRouter(prefix="/api")

api_router.include_router(account_router, prefix="/me", tags=["account"])
