"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2) y la
  jerarquía de errores.
- El dominio no conoce HTTP, CLI, ni formatos de registradores: solo conceptos
  del problema (conexión, dominio, disponibilidad).
"""
