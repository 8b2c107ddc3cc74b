"""Dispute Engine - Legal Reference Resolver"""
from .fcra_statutes import FCRA_STATUTE_MAP, resolve_statute, get_statute_details
from .reference_resolver import (
    LegalResolution,
    resolve_legal_basis,
    get_sample_dispute_language,
    check_security_breaches,
    enrich_disputes,
)

__all__ = [
    "FCRA_STATUTE_MAP",
    "resolve_statute",
    "get_statute_details",
    "LegalResolution",
    "resolve_legal_basis",
    "get_sample_dispute_language",
    "check_security_breaches",
    "enrich_disputes",
]
