import hashlib
import hmac

# module paybridge.payments.signature
def generate_signature(provider_order_id: str, provider_payment_id: str, secret: str) -> str:
    """
    HMAC-SHA256(secret, "<provider_order_id>|<provider_payment_id>") encodé en hex minuscule.
    """
    message = f"{provider_order_id}|{provider_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

def verify_signature(provider_order_id: str, provider_payment_id: str, signature: str, secret: str) -> bool:
    """
    Compare la signature reçue à la signature attendue (temps constant, sensible à la casse).
    """
    if not signature or not secret:
        return False
    expected = generate_signature(provider_order_id, provider_payment_id, secret)
    return hmac.compare_digest(expected.encode("utf-8"), str(signature).encode("utf-8"))
