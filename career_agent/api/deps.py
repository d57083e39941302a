"""Shared dependencies for API endpoints.

Every collaborator the routes need comes through FastAPI dependency
injection so tests can swap it with app.dependency_overrides.

There is no authentication layer. The caller may name a user with the
X-User-ID header; otherwise settings.default_user_id is used.
"""

import re
from typing import Annotated

from fastapi import Depends, Header, Request

from career_agent.agents.base import DocumentStore
from career_agent.core.config import Settings, settings
from career_agent.core.errors import ValidationError
from career_agent.providers.config import ProviderConfig
from career_agent.providers.factory import create_llm_provider
from career_agent.providers.llm.base import LLMProvider
from career_agent.services.session_store import SessionStore, get_session_store

_USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.@-]{1,64}$")


def get_settings() -> Settings:
    return settings


def get_current_user_id(
    app_settings: Annotated[Settings, Depends(get_settings)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the acting user.

    Raises:
        ValidationError: If the header is present but malformed.
    """
    if x_user_id is None:
        return app_settings.default_user_id
    if not _USER_ID_PATTERN.match(x_user_id):
        raise ValidationError("Invalid X-User-ID header")
    return x_user_id


def get_llm_provider(
    request: Request,
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> LLMProvider:
    """Provider built on first use and kept on the application.

    Built lazily so the app starts without API keys; a missing key only
    surfaces when a chat turn needs the model.
    """
    provider = getattr(request.app.state, "llm_provider", None)
    if provider is None:
        provider = create_llm_provider(ProviderConfig.from_settings(app_settings))
        request.app.state.llm_provider = provider
    return provider


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store


def get_sessions() -> SessionStore:
    return get_session_store()


# Type aliases for cleaner route signatures
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
AppSettings = Annotated[Settings, Depends(get_settings)]
LLM = Annotated[LLMProvider, Depends(get_llm_provider)]
Store = Annotated[DocumentStore, Depends(get_document_store)]
Sessions = Annotated[SessionStore, Depends(get_sessions)]
