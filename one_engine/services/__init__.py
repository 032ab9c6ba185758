"""Domain services."""

from one_engine.services.errors import (
    AlreadyExistsError,
    ConflictError,
    DomainError,
    DomainValidationError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from one_engine.services.forex import ForexService, InvestmentStatus
from one_engine.services.projects import Project, ProjectService
from one_engine.services.quant import AiQuantService, OrderStatus
from one_engine.services.users import User, UserService

__all__ = [
    "AiQuantService",
    "ForexService",
    "ProjectService",
    "UserService",
    "Project",
    "User",
    "OrderStatus",
    "InvestmentStatus",
    "DomainError",
    "DomainValidationError",
    "InvalidStateError",
    "NotFoundError",
    "PermissionDeniedError",
    "AlreadyExistsError",
    "ConflictError",
]
