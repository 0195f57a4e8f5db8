"""Versioned API surface, mounted under /api/v1 by the app factory"""
from fastapi import APIRouter

from .tickets import router as tickets_router

api_router = APIRouter()
api_router.include_router(tickets_router, prefix="/tickets", tags=["Tickets"])

__all__ = ["api_router"]
