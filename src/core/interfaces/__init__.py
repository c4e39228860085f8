"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos
  (clientes de registrador, almacenamiento).
- Permite invertir dependencias: el Core depende de abstracciones.
"""
