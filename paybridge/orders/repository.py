from typing import Any, Dict, Optional
from uuid import uuid4
import logging

import paybridge.infra.supabase_client as supabase_client
from paybridge.config import Settings
from paybridge.orders.errors import StoreError
from paybridge.orders.models import OrderDraft

logger = logging.getLogger(__name__)


def _first_row(res) -> Optional[Dict[str, Any]]:
    rows = getattr(res, "data", None) or []
    if isinstance(rows, list):
        return rows[0] if rows else None
    if isinstance(rows, dict):
        return rows
    return None


# module paybridge.orders.repository
class OrderRepository:
    """
    Commandes persistées dans la table Supabase configurée (client service-role).
    Seule cette classe écrit dans la table des commandes.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.table = settings.orders_table

    def _client(self):
        return supabase_client.get_service_supabase(self.settings)

    def create(self, draft: OrderDraft) -> str:
        """Insère la commande (payment_status='created') et retourne l'identifiant attribué."""
        order_id = uuid4().hex
        row = {"id": order_id, **draft.to_row()}
        try:
            self._client().table(self.table).insert(row).execute()
        except Exception as e:
            logger.exception(
                "orders.repository.create failed user_id=%s provider_order_id=%s",
                draft.user_id, draft.provider_order_id,
            )
            raise StoreError(f"Failed to save order: {e}") from e
        return order_id

    def get(self, order_id: str) -> Optional[Dict[str, Any]]:
        if not order_id:
            return None
        try:
            res = (
                self._client()
                .table(self.table)
                .select("*")
                .eq("id", order_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.exception("orders.repository.get failed id=%s", order_id)
            raise StoreError(f"Failed to load order: {e}") from e
        return _first_row(res)

    def find_by_provider_order_id(self, provider_order_id: str) -> Optional[Dict[str, Any]]:
        """Retrouve la commande via l'identifiant connu des deux côtés (passerelle et base)."""
        if not provider_order_id:
            return None
        try:
            res = (
                self._client()
                .table(self.table)
                .select("*")
                .eq("provider_order_id", provider_order_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.exception("orders.repository.find_by_provider_order_id failed provider_order_id=%s", provider_order_id)
            raise StoreError(f"Failed to load order: {e}") from e
        return _first_row(res)

    def update(self, order_id: str, fields: Dict[str, Any], only_if_status: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Mise à jour partielle en un seul appel.
        - only_if_status: condition sur payment_status (concurrence optimiste)
        - Retourne la ligne mise à jour, ou None si aucune ligne ne correspond
        """
        try:
            query = self._client().table(self.table).update(fields).eq("id", order_id)
            if only_if_status:
                query = query.eq("payment_status", only_if_status)
            res = query.execute()
        except Exception as e:
            logger.exception("orders.repository.update failed id=%s fields=%s", order_id, sorted(fields))
            raise StoreError(f"Failed to update order: {e}") from e
        return _first_row(res)
