"""Registry clients for the supported registries."""

from .base import RegistryClient
from .jsr import JsrRegistryClient
from .npm import NpmRegistryClient

__all__ = [
    "RegistryClient",
    "JsrRegistryClient",
    "NpmRegistryClient",
]
