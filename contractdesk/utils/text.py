"""
Text normalisation helpers.

Contract data is typed in by hand and arrives with inconsistent accents and
casing ("Jurídico", "juridico", "JURIDICO"). Filters compare on the
accent-free lowercase form; stored values are canonicalised through the
field maps below.
"""

from __future__ import annotations

import unicodedata
from typing import Dict

NORMALIZATION_MAPS: Dict[str, Dict[str, str]] = {
    "risk_level": {
        "baixo": "Baixo",
        "medio": "Medio",
        "alto": "Alto",
        "critico": "Critico",
        "low": "Baixo",
        "medium": "Medio",
        "high": "Alto",
        "critical": "Critico",
    },
    "priority": {
        "baixa": "Baixa",
        "media": "Media",
        "alta": "Alta",
        "urgente": "Urgente",
        "critica": "Critica",
    },
    "responsible_area": {
        "financeiro": "Financeiro",
        "juridico": "Juridico",
        "operacoes": "Operacoes",
        "ti": "TI",
        "rh": "RH",
        "recursos humanos": "Recursos Humanos",
        "comercial": "Comercial",
        "compras": "Compras",
    },
}


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_for_comparison(text: str | None) -> str:
    """Lowercase, accent-free, trimmed form used for matching."""
    if not text or not isinstance(text, str):
        return ""
    return _strip_accents(text).lower().strip()


def normalize_text(text: str | None) -> str:
    """Accent-free form with only the first letter capitalised."""
    value = normalize_for_comparison(text)
    return value[:1].upper() + value[1:]


def normalize_field_value(field: str, value: str | None) -> str:
    """
    Canonicalise `value` for `field` using the known value maps, falling back
    to `normalize_text` for unmapped fields or values.
    """
    if not value or not isinstance(value, str):
        return ""
    key = normalize_for_comparison(value)
    mapped = NORMALIZATION_MAPS.get(field, {}).get(key)
    return mapped if mapped is not None else normalize_text(value)


__all__ = [
    "NORMALIZATION_MAPS",
    "normalize_field_value",
    "normalize_for_comparison",
    "normalize_text",
]
