"""
Adaptateurs de requête: normalisent une enveloppe de transport en OrderRequest(action, payload).
- JsonEnvelopeAdapter: corps JSON (dict, str ou bytes) reçu en HTTP ou en CLI
- FunctionRuntimeAdapter: objet requête d'un runtime serverless (bodyJson, body, bodyText, ...)
Le contrôleur ne lit jamais de champ propre au transport.
"""
from typing import Any, Dict, Optional, Union
import json
import logging

from paybridge.orders.errors import ValidationError
from paybridge.orders.models import ACTIONS, ACTION_CREATE_ORDER, ACTION_VERIFY_PAYMENT, OrderRequest

logger = logging.getLogger(__name__)

RawInput = Union[Dict[str, Any], str, bytes, bytearray, None]

_ACTIONS_BY_KEY = {a.lower(): a for a in ACTIONS}


def try_parse_json(raw: Any) -> Optional[Any]:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError:
            return None
    if not isinstance(raw, str):
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _canonical_action(action: Any, payload: Dict[str, Any]) -> str:
    """
    Action canonique:
    - comparaison insensible à la casse ("createorder" -> "createOrder")
    - action absente: verifyPayment si providerPaymentId est présent, sinon createOrder
    - action inconnue: conservée telle quelle (le contrôleur répond "Unknown action")
    """
    if isinstance(action, str) and action.strip():
        return _ACTIONS_BY_KEY.get(action.strip().lower(), action.strip())
    return ACTION_VERIFY_PAYMENT if payload.get("providerPaymentId") else ACTION_CREATE_ORDER


# module paybridge.orders.adapters
class JsonEnvelopeAdapter:
    """Accepte {action, payload}, {payload: {action, ...}} ou un corps plat."""

    def normalize(self, raw: RawInput) -> OrderRequest:
        body = raw
        if isinstance(raw, (str, bytes, bytearray)):
            body = try_parse_json(raw)
            if body is None:
                raise ValidationError("Invalid JSON body")
        if body is None:
            body = {}
        if not isinstance(body, dict):
            raise ValidationError("Invalid request body")

        nested = body.get("payload")
        payload = nested if isinstance(nested, dict) else body
        action = body.get("action") or payload.get("action")
        return OrderRequest(action=_canonical_action(action, payload), payload=payload)


class FunctionRuntimeAdapter:
    """
    Enveloppe d'un runtime de fonctions (objet req éventuellement emballé dans {req: ...}).
    Ordre de lecture: bodyJson, body (objet puis chaîne), bodyText, bodyRaw, bodyBinary.data.
    Le corps extrait est ensuite traité par JsonEnvelopeAdapter.
    """

    def __init__(self, envelope: Optional[JsonEnvelopeAdapter] = None):
        self.envelope = envelope or JsonEnvelopeAdapter()

    def extract_body(self, raw: RawInput) -> Any:
        req = raw
        if isinstance(req, (str, bytes, bytearray)):
            return try_parse_json(req) or {}
        if not isinstance(req, dict):
            return {}
        if isinstance(req.get("req"), dict):
            req = req["req"]

        if isinstance(req.get("bodyJson"), dict):
            logger.debug("adapters.extract_body <- bodyJson")
            return req["bodyJson"]
        body = req.get("body")
        if isinstance(body, dict):
            logger.debug("adapters.extract_body <- body (object)")
            return body
        if isinstance(body, str) and body:
            return try_parse_json(body) or {}
        if isinstance(req.get("bodyText"), str) and req.get("bodyText"):
            return try_parse_json(req["bodyText"]) or {}
        if isinstance(req.get("bodyRaw"), str) and req.get("bodyRaw"):
            return try_parse_json(req["bodyRaw"]) or {}
        binary = req.get("bodyBinary")
        if isinstance(binary, dict) and isinstance(binary.get("data"), list):
            try:
                data = bytes(binary["data"])
            except (TypeError, ValueError):
                return {}
            return try_parse_json(data) or {}
        return req

    def normalize(self, raw: RawInput) -> OrderRequest:
        body = self.extract_body(raw)
        if not isinstance(body, dict):
            body = {}
        return self.envelope.normalize(body)
