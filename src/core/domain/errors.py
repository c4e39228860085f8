"""Errores del dominio.

Por qué una jerarquía propia:
- Los adaptadores traducen fallos de HTTP/XML/JSON a estos tipos, de modo que
  los servicios (sync, búsqueda) y la CLI no dependen de httpx.
- Permite decidir en un único borde qué se convierte en marcador por registrador
  y qué se propaga al usuario.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError


class RegistrarHubError(Exception):
    """Base de todos los errores de la aplicación."""


class NotFoundError(RegistrarHubError):
    """Una conexión, dominio o usuario no existe."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class ValidationError(RegistrarHubError):
    """Entrada rechazada antes de cualquier llamada remota."""

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        errors = exc.errors()
        if not errors:
            return cls(str(exc))
        first = errors[0]
        ctx_error = (first.get("ctx") or {}).get("error")
        message = str(ctx_error) if ctx_error is not None else str(first.get("msg", exc))
        return cls(message)


class StorageError(RegistrarHubError):
    """El fichero de almacenamiento no se puede leer o no tiene el formato esperado."""

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"Cannot load storage file {path}: {reason}")
        self.path = path


class UnsupportedRegistrarError(RegistrarHubError):
    def __init__(self, registrar: object) -> None:
        super().__init__(f"Unsupported registrar: {registrar}")
        self.registrar = registrar


class UpstreamError(RegistrarHubError):
    """El registrador respondió con error o no se pudo contactar."""

    def __init__(
        self,
        message: str,
        *,
        registrar: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.registrar = registrar
        self.status_code = status_code


class UpstreamAuthError(UpstreamError):
    """Credenciales rechazadas (o IP no autorizada en Namecheap)."""


class UpstreamAPIError(UpstreamError):
    """Respuesta no exitosa, malformada o fallo de red tras los reintentos."""
