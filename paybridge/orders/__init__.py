"""Cycle de vie des commandes: prix, persistance, vérification et dispatch des actions."""
