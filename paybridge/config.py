"""
Configuration centrale du bridge de paiement.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Expose les réglages HTTP non sensibles (CORS/hosts) au niveau module
- Valide une seule fois, au démarrage, les secrets/URLs Stripe et Supabase
  dans un objet Settings passé explicitement aux services (jamais relu en cours de requête)
"""
# paybridge.config
from pathlib import Path
import os
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Calculer le chemin du projet puis charger .env de manière explicite
# (les variables déjà présentes dans l'environnement restent prioritaires)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)


# Variables obligatoires: leur absence est une erreur fatale de démarrage
REQUIRED_ENV = (
    "STRIPE_PUBLIC_KEY",
    "STRIPE_SECRET_KEY",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_KEY",
    "SUPABASE_SCHEMA",
    "SUPABASE_ORDERS_TABLE",
    "SUPABASE_PRODUCTS_TABLE",
)


class ConfigError(RuntimeError):
    """Configuration absente ou invalide (détectée au démarrage)."""

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []


def _clean_env(v: Optional[str]) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")


def _normalize_supabase_url(url: str) -> str:
    # SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
    if url and not url.startswith("http"):
        url = "https://" + url
    return url.rstrip("/")


# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]
# Proxys dont les en-têtes X-Forwarded-* sont crus (même convention que uvicorn)
FORWARDED_ALLOW_IPS = [h.strip() for h in os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1").split(",") if h.strip()]


class Settings(BaseModel):
    """
    Réglages validés du bridge.
    - stripe_*: identifiants de la passerelle (clé publique = key id, clé secrète)
    - supabase_*: endpoint (URL projet), clé service-role, schéma (= base), tables
    - signature_secret: secret partagé pour le HMAC de confirmation de paiement
    """

    stripe_public_key: str
    stripe_secret_key: str
    supabase_url: str
    supabase_service_key: str
    supabase_schema: str
    orders_table: str
    products_table: str
    signature_secret: str
    default_currency: str = "INR"
    catalog_price_unit: str = Field(default="minor")

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        v = (v or "").strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("DEFAULT_CURRENCY doit être un code ISO à 3 lettres")
        return v

    @field_validator("catalog_price_unit")
    @classmethod
    def _price_unit(cls, v: str) -> str:
        v = (v or "minor").strip().lower()
        if v not in ("minor", "major"):
            raise ValueError("CATALOG_PRICE_UNIT doit valoir 'minor' ou 'major'")
        return v


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Construit et valide les Settings à partir de l'environnement.
    - environ: mapping optionnel (tests); par défaut os.environ
    - Soulève ConfigError listant toutes les variables obligatoires manquantes
    """
    env = os.environ if environ is None else environ
    values: Dict[str, str] = {k: _clean_env(env.get(k)) for k in REQUIRED_ENV}
    missing = [k for k, v in values.items() if not v]
    if missing:
        raise ConfigError("Missing env: " + ", ".join(missing), missing=missing)

    try:
        return Settings(
            stripe_public_key=values["STRIPE_PUBLIC_KEY"],
            stripe_secret_key=values["STRIPE_SECRET_KEY"],
            supabase_url=_normalize_supabase_url(values["SUPABASE_URL"]),
            supabase_service_key=values["SUPABASE_SERVICE_KEY"],
            supabase_schema=values["SUPABASE_SCHEMA"],
            orders_table=values["SUPABASE_ORDERS_TABLE"],
            products_table=values["SUPABASE_PRODUCTS_TABLE"],
            # Par défaut, le secret de signature est la clé secrète de la passerelle
            signature_secret=_clean_env(env.get("PAYMENT_SIGNATURE_SECRET")) or values["STRIPE_SECRET_KEY"],
            default_currency=_clean_env(env.get("DEFAULT_CURRENCY")) or "INR",
            catalog_price_unit=_clean_env(env.get("CATALOG_PRICE_UNIT")) or "minor",
        )
    except ValueError as e:
        # pydantic.ValidationError hérite de ValueError
        raise ConfigError(f"Invalid env: {e}") from e
