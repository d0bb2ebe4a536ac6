"""Built-in inspectors."""

from .cache import CacheInspector
from .http_headers import HttpHeadersInspector
from .kernel import KernelInspector
from .modules import ModulesInspector
from .opcache import OpcacheInspector
from .redis import RedisInspector
from .security import SecurityChecklistInspector
from .system import SystemInspector

BUILTIN_INSPECTORS = (
    CacheInspector,
    RedisInspector,
    OpcacheInspector,
    KernelInspector,
    SystemInspector,
    HttpHeadersInspector,
    SecurityChecklistInspector,
    ModulesInspector,
)

__all__ = [
    "BUILTIN_INSPECTORS",
    "CacheInspector",
    "HttpHeadersInspector",
    "KernelInspector",
    "ModulesInspector",
    "OpcacheInspector",
    "RedisInspector",
    "SecurityChecklistInspector",
    "SystemInspector",
]
