"""
Typed results for the credential and site-config services.

Each operation returns ``Ok(value)`` or ``Err(kind, message, cause)``. Callers
branch on ``isinstance(result, Ok)`` and, for failures, on ``result.kind``
only; ``cause`` carries the underlying store error for diagnostics.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Enum)


class AuthFailure(str, Enum):
    """Why a credential did not authenticate."""

    MISSING_CREDENTIAL = "MissingCredential"
    INVALID_CREDENTIAL = "InvalidCredential"
    DISABLED_CREDENTIAL = "DisabledCredential"
    RESOLVER_UNAVAILABLE = "ResolverUnavailable"


class ConfigFailure(str, Enum):
    """Why a site configuration could not be resolved or updated."""

    INVALID_REQUEST = "InvalidRequest"
    SITE_NOT_FOUND = "SiteNotFound"
    EMPTY_UPDATE = "EmptyUpdate"
    STORAGE_FAILURE = "StorageFailure"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err(Generic[K]):
    kind: K
    message: str
    cause: BaseException | None = None
