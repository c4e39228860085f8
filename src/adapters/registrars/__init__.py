"""Clientes de registradores (adaptadores concretos).

Por qué un paquete:
- Agrupa un módulo por registrador (GoDaddy, Namecheap, Dynadot).
- Cada cliente implementa `core.interfaces.registrar.RegistrarClient` y,
  opcionalmente, alguna capacidad extendida de búsqueda.
"""

from adapters.registrars.dynadot import DynadotClient
from adapters.registrars.factory import create_client
from adapters.registrars.godaddy import GoDaddyClient
from adapters.registrars.namecheap import NamecheapClient

__all__ = [
    "DynadotClient",
    "GoDaddyClient",
    "NamecheapClient",
    "create_client",
]
