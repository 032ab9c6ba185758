"""
Service container and FastAPI dependencies.

The container is built once per process by build_container() and hung
on app.state; handlers reach collaborators only through the getters
below, so tests swap the whole graph by building their own container.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from one_engine.auth import AuthGate, PrincipalResolver, TokenVerifier
from one_engine.config import Settings
from one_engine.services import AiQuantService, ForexService, ProjectService, UserService
from one_engine.storage import StorageProvider, create_local_storage


@dataclass
class ServiceContainer:
    settings: Settings
    storage: StorageProvider
    users: UserService
    projects: ProjectService
    quant: AiQuantService
    forex: ForexService
    gate: AuthGate


def build_container(settings: Settings, storage: StorageProvider | None = None) -> ServiceContainer:
    storage = storage or create_local_storage()
    users = UserService(storage)
    projects = ProjectService(storage, api_key_prefix=settings.api_key_prefix)
    gate = AuthGate(
        verifier=TokenVerifier.from_settings(settings),
        resolver=PrincipalResolver(users),
        projects=projects,
    )
    return ServiceContainer(
        settings=settings,
        storage=storage,
        users=users,
        projects=projects,
        quant=AiQuantService(storage),
        forex=ForexService(storage),
        gate=gate,
    )


# =============================================================================
# Dependencies
# =============================================================================


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_settings_dep(request: Request) -> Settings:
    return get_container(request).settings


def get_auth_gate(request: Request) -> AuthGate:
    return get_container(request).gate


def get_user_service(request: Request) -> UserService:
    return get_container(request).users


def get_project_service(request: Request) -> ProjectService:
    return get_container(request).projects


def get_quant_service(request: Request) -> AiQuantService:
    return get_container(request).quant


def get_forex_service(request: Request) -> ForexService:
    return get_container(request).forex
