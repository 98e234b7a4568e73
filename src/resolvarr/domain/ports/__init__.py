from .program_store import ProgramStorePort
from .resolver import ResolverPort
from .result_cache import ResultCachePort

__all__ = [
    "ProgramStorePort",
    "ResolverPort",
    "ResultCachePort",
]
