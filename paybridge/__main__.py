"""
Point d'entrée principal du bridge de paiement.

Usage:
    python -m paybridge                 # sert l'API (uvicorn)
    python -m paybridge invoke '<json>' # exécute une action localement et affiche le résultat JSON

Variables d'environnement lues:
- PORT: port d'écoute (par défaut 8000)
- UVICORN_RELOAD: active le reload auto en dev ("1"/"true"/"yes")
- LOG_LEVEL: niveau de logs (ex: "info", "debug")
- PAYBRIDGE_FUNCTION_DATA: corps JSON utilisé par `invoke` si aucun argument n'est fourni
"""
import argparse
import json
import logging
import os
import sys
from typing import List, Optional

import uvicorn

from paybridge.config import ConfigError, load_settings
from paybridge.orders.adapters import JsonEnvelopeAdapter
from paybridge.orders.errors import OrderError
from paybridge.orders.service import build_order_service


def serve() -> None:
    port = int(os.environ.get("PORT", 8000))
    # Activer le reload uniquement si explicitement demandé (ex: en local)
    reload_flag = os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes")
    log_level = os.environ.get("LOG_LEVEL", "info")
    uvicorn.run(
        "paybridge.asgi:app",
        host="0.0.0.0",
        port=port,
        reload=reload_flag,
        log_level=log_level,
    )


def invoke(raw: Optional[str]) -> int:
    """Exécute une requête {action, payload}; code de sortie 0 si ok, 1 sinon."""
    settings = load_settings()
    service = build_order_service(settings)
    data = raw if raw is not None else os.environ.get("PAYBRIDGE_FUNCTION_DATA", "{}")
    try:
        request = JsonEnvelopeAdapter().normalize(data)
    except OrderError as e:
        result = e.to_response()
    else:
        result, _ = service.respond(request)
    print(json.dumps(result, indent=2))
    return 0 if result.get("ok") else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="paybridge")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="Sert l'API HTTP (défaut)")
    p_invoke = sub.add_parser("invoke", help="Exécute une action createOrder/verifyPayment")
    p_invoke.add_argument("body", nargs="?", help="Corps JSON {action, payload}")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "info").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        # Échec immédiat si la configuration est incomplète
        load_settings()
    except ConfigError as e:
        logging.getLogger("paybridge").error("%s", e)
        return 2

    if args.command == "invoke":
        return invoke(args.body)
    serve()
    return 0


if __name__ == "__main__":
    sys.exit(main())
