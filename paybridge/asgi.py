"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn/uvicorn-workers) importe `paybridge.asgi:app`.
- Toute la configuration FastAPI est centralisée dans paybridge.app_setup; ce fichier ne fait qu’exposer `app`.
"""

from paybridge.app import app  # noqa: F401
