"""Datos de demostración.

Crea el usuario `demo`, una conexión por registrador y cinco dominios de
ejemplo. Las conexiones usan credenciales reales si están en el entorno
(`GODADDY_API_KEY`/`GODADDY_API_SECRET`, `NAMECHEAP_API_KEY`/`NAMECHEAP_USERNAME`,
`DYNADOT_API_TOKEN`); si no, keys con prefijo demo (sin red).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from core.config import AppSettings
from core.domain.models import Domain, Registrar, RegistrarConnection, User
from core.interfaces.storage import Storage

logger = logging.getLogger(__name__)

DEMO_USERNAME = "demo"


@dataclass(frozen=True)
class _DemoDomain:
    name: str
    registrar: Registrar
    status: str
    expires_in_days: int
    registered_days_ago: int
    nameservers: tuple[str, ...]
    auto_renew: bool
    registrar_domain_id: str


_DEMO_DOMAINS = (
    _DemoDomain("example.com", Registrar.GODADDY, "active", 365, 730, ("ns1.godaddy.com", "ns2.godaddy.com"), True, "12345"),
    _DemoDomain(
        "testdomain.net",
        Registrar.NAMECHEAP,
        "expiring",
        15,
        340,
        ("dns1.registrar-servers.com", "dns2.registrar-servers.com"),
        False,
        "nc-67890",
    ),
    _DemoDomain("mysite.org", Registrar.DYNADOT, "active", 180, 180, ("ns1.dynadot.com", "ns2.dynadot.com"), True, "dyn-abc123"),
    _DemoDomain(
        "coldemaildomain.io",
        Registrar.GODADDY,
        "active",
        300,
        60,
        ("ns1.cloudflare.com", "ns2.cloudflare.com"),
        False,
        "gd-456789",
    ),
    _DemoDomain(
        "newsletter-sender.com",
        Registrar.NAMECHEAP,
        "active",
        250,
        30,
        ("ns1.digitalocean.com", "ns2.digitalocean.com"),
        True,
        "nc-111222",
    ),
)


def _credentials(registrar: Registrar, settings: AppSettings) -> tuple[str, str | None]:
    prefix = settings.demo_key_prefix
    if registrar is Registrar.GODADDY:
        key, secret = os.environ.get("GODADDY_API_KEY"), os.environ.get("GODADDY_API_SECRET")
        if key and secret:
            return key, secret
        return f"{prefix}godaddy-key", f"{prefix}godaddy-secret"
    if registrar is Registrar.NAMECHEAP:
        key, username = os.environ.get("NAMECHEAP_API_KEY"), os.environ.get("NAMECHEAP_USERNAME")
        if key and username:
            return key, username
        return f"{prefix}namecheap-key", "demo-user"
    token = os.environ.get("DYNADOT_API_TOKEN")
    return (token, None) if token else (f"{prefix}dynadot-key", None)


async def seed_demo_data(
    storage: Storage,
    settings: AppSettings | None = None,
    *,
    now: datetime | None = None,
) -> User:
    """Crea (una sola vez) el usuario demo, sus conexiones y dominios.

    Si el usuario ya tiene conexiones no se toca nada.
    """

    settings = settings or AppSettings()
    now = now or datetime.now(timezone.utc)

    user = await storage.get_user_by_username(DEMO_USERNAME)
    if user is None:
        user = await storage.create_user(User(username=DEMO_USERNAME))
        logger.info("Created demo user %s", user.id)

    if await storage.get_registrar_connections(user.id):
        return user

    connections: dict[Registrar, RegistrarConnection] = {}
    for registrar in Registrar:
        api_key, api_secret = _credentials(registrar, settings)
        connections[registrar] = await storage.create_registrar_connection(
            RegistrarConnection(
                user_id=user.id,
                registrar=registrar,
                api_key=api_key,
                api_secret=api_secret,
            )
        )

    for entry in _DEMO_DOMAINS:
        connection = connections[entry.registrar]
        await storage.create_domain(
            Domain(
                user_id=user.id,
                registrar_connection_id=connection.id,
                name=entry.name,
                registrar=entry.registrar,
                status=entry.status,
                expiration_date=now + timedelta(days=entry.expires_in_days),
                registration_date=now - timedelta(days=entry.registered_days_ago),
                nameservers=list(entry.nameservers),
                auto_renew=entry.auto_renew,
                registrar_domain_id=entry.registrar_domain_id,
            )
        )
    logger.info("Seeded %d demo domains", len(_DEMO_DOMAINS))
    return user
