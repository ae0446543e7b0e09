from typing import Any, Dict
from urllib.parse import urlparse
import socket

import paybridge.infra.supabase_client as supabase_client
from paybridge.config import Settings


def _check_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}


def health_supabase_info(settings: Settings) -> Dict[str, Any]:
    """
    État de la connexion Supabase pour le monitoring.
    - DNS du projet, puis lecture minimale des tables produits et commandes
    - Ne lève jamais: les erreurs sont rapportées dans le dict
    """
    parsed = urlparse(settings.supabase_url)
    hostname = parsed.hostname
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError as e:
            dns_ok = False
            dns_error = str(e)

    info: Dict[str, Any] = {
        "supabase_url": settings.supabase_url,
        "hostname": hostname,
        "schema": settings.supabase_schema,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_service_supabase(settings)
        for t in (settings.products_table, settings.orders_table):
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = all(t["ok"] for t in info["tables"].values())
    except Exception as e:
        info["error"] = str(e)
    return info
