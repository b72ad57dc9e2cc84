from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .auth import AuthService, Principal
from .cache import TreeCache
from .config import settings
from .db import init_db
from .services.content_service import ContentService
from .services.navigation_service import NavigationResolver
from .services.projection_service import TreeProjector
from .services.resolver_service import IdentityResolver
from .store import BeanieEntityStore, EntityStore

# Security setup
security = HTTPBearer()


async def ensure_db():
    """
    FastAPI dependency: call on routes/routers requiring DB.
    First call triggers init_beanie once; subsequent calls are cheap.
    """
    await init_db()


@lru_cache
def get_store() -> EntityStore:
    return BeanieEntityStore()


@lru_cache
def get_cache() -> TreeCache:
    return TreeCache(
        max_entries=settings.CACHE_MAX_ENTRIES, ttl_seconds=settings.CACHE_TTL_SECONDS
    )


def get_content_service(
    store: EntityStore = Depends(get_store), cache: TreeCache = Depends(get_cache)
) -> ContentService:
    return ContentService(store, cache)


def get_projector(
    store: EntityStore = Depends(get_store), cache: TreeCache = Depends(get_cache)
) -> TreeProjector:
    return TreeProjector(store, cache)


def get_navigation_resolver(
    store: EntityStore = Depends(get_store),
    projector: TreeProjector = Depends(get_projector),
) -> NavigationResolver:
    return NavigationResolver(projector, IdentityResolver(store))


# Dependency to get current caller
async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Principal:
    """Get current caller from JWT token"""
    return AuthService.decode_token(credentials.credentials)


# Admin-only gate
async def admin_required(principal: Principal = Depends(get_current_principal)):
    """Check if current caller has admin role"""
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return principal
