"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan los adaptadores concretos.
- Permite invertir dependencias: el Core depende de abstracciones.
"""
