"""
Accès en lecture au catalogue produits (table Supabase configurée).
Le catalogue est la seule source de vérité pour les prix unitaires.
"""
from typing import Any, Dict, Iterable, List
import logging

import paybridge.infra.supabase_client as supabase_client
from paybridge.config import Settings
from paybridge.orders.errors import StoreError

logger = logging.getLogger(__name__)

# module paybridge.catalog.repository
class CatalogRepository:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.table = settings.products_table

    def fetch_products_by_ids(self, ids: List[str]) -> List[dict]:
        """
        Récupère les produits par leurs IDs.
        - Retourne [] si ids vide
        - Soulève StoreError si la lecture échoue (pas de catalogue vide silencieux)
        """
        if not ids:
            return []
        try:
            res = (
                supabase_client.get_service_supabase(self.settings)
                .table(self.table)
                .select("id, name, category, unit_price")
                .in_("id", [str(i) for i in ids])
                .execute()
            )
            return res.data or []
        except Exception as e:
            logger.exception("catalog.repository.fetch_products_by_ids failed ids=%s", ids)
            raise StoreError(f"Catalog lookup failed: {e}") from e

    def get_products_map(self, ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """
        Retourne un dict {id: produit} à partir d’une liste d’IDs (doublons ignorés).
        """
        unique_ids = list(dict.fromkeys(str(i) for i in ids))
        products = self.fetch_products_by_ids(unique_ids)
        return {str(p.get("id")): p for p in products}
