from .resolver_admin import ResolverAdminUseCase

__all__ = ["ResolverAdminUseCase"]
