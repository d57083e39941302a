"""Routes mounted under /api/v1."""

from fastapi import APIRouter

from career_agent.api.v1 import applications, chat

router = APIRouter()
router.include_router(chat.router, prefix="/chat", tags=["chat"])
router.include_router(applications.router, prefix="/applications", tags=["applications"])
