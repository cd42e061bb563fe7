from aremxyplug.providers.base import HttpProviderClient, ProviderClient
from aremxyplug.providers.vtpass import VTPassClient
from aremxyplug.providers.vtu import VTUClient

__all__ = ["HttpProviderClient", "ProviderClient", "VTPassClient", "VTUClient"]
