from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from paybridge.orders.adapters import FunctionRuntimeAdapter, JsonEnvelopeAdapter, try_parse_json
from paybridge.orders.errors import OrderError, ValidationError
from paybridge.orders.models import ACTION_CREATE_ORDER, ACTION_VERIFY_PAYMENT, OrderRequest
from paybridge.orders.service import OrderService
from paybridge.utils.rate_limit import optional_rate_limit

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])

envelope_adapter = JsonEnvelopeAdapter()
function_adapter = FunctionRuntimeAdapter(envelope_adapter)


def get_order_service(request: Request) -> OrderService:
    """Contrôleur construit au démarrage (lifespan) à partir des Settings validés."""
    return request.app.state.order_service


async def _read_json(request: Request, strict: bool = True) -> Any:
    raw = await request.body()
    if not raw:
        return {}
    parsed = try_parse_json(raw)
    if parsed is None and strict:
        raise ValidationError("Invalid JSON body")
    return parsed if parsed is not None else {}


def _respond(service: OrderService, order_request: OrderRequest) -> JSONResponse:
    body, status_code = service.respond(order_request)
    return JSONResponse(body, status_code=status_code)


def _error_response(e: OrderError) -> JSONResponse:
    return JSONResponse(e.to_response(), status_code=e.status_code)


# module paybridge.orders.views
@router.post("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def order_envelope(request: Request, service: OrderService = Depends(get_order_service)):
    """
    Point d'entrée unique {action, payload}.
    - Accepte aussi {payload: {action, ...}} et un corps plat (action déduite)
    - Réponse: toujours {ok, ...}; 200 si ok, sinon le code de l'erreur (400/404/409/502/500)
    """
    try:
        order_request = envelope_adapter.normalize(await _read_json(request))
    except OrderError as e:
        return _error_response(e)
    return _respond(service, order_request)


@router.post("/create", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_order(request: Request, service: OrderService = Depends(get_order_service)):
    """
    Crée une commande: { "userId", "items": [ {"productId", "quantity"} ], "currency"?, "shippingAddress"?, "idempotencyKey"? }
    - Les prix éventuellement envoyés par le client sont ignorés
    - Réponse: {ok, orderId, providerOrderId, amount, currency, providerKeyId}
    """
    try:
        payload = await _read_json(request)
    except OrderError as e:
        return _error_response(e)
    if not isinstance(payload, dict):
        return _error_response(ValidationError("Invalid request body"))
    return _respond(service, OrderRequest(action=ACTION_CREATE_ORDER, payload=payload))


@router.post("/verify")
async def verify_payment(request: Request, service: OrderService = Depends(get_order_service)):
    """
    Vérifie une confirmation de paiement: { "orderId"?, "providerOrderId", "providerPaymentId", "providerSignature" }
    - Réponse: {ok, orderId, message}
    """
    try:
        payload = await _read_json(request)
    except OrderError as e:
        return _error_response(e)
    if not isinstance(payload, dict):
        return _error_response(ValidationError("Invalid request body"))
    return _respond(service, OrderRequest(action=ACTION_VERIFY_PAYMENT, payload=payload))


@router.post("/function", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def function_envelope(request: Request, service: OrderService = Depends(get_order_service)):
    """
    Enveloppe de runtime serverless ({req: {...}}, bodyJson, body, bodyText, bodyRaw, bodyBinary).
    Un corps illisible est traité comme une requête vide (createOrder -> erreur de validation).
    """
    raw = await _read_json(request, strict=False)
    try:
        order_request = function_adapter.normalize(raw)
    except OrderError as e:
        return _error_response(e)
    return _respond(service, order_request)
