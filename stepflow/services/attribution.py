# stepflow/services/attribution.py
"""Click-source attribution labels derived from landing-page query parameters."""
from __future__ import annotations

from typing import Mapping, Optional

SOURCE_DISPLAY_NAMES = {
    "daangn": "당근",
    "insta": "인스타",
    "facebook": "페이스북",
    "google": "구글",
    "youtube": "유튜브",
    "kakao": "카카오",
    "naver": "네이버",
    "naverblog": "네이버블로그",
    "toss": "토스",
    "mamcafe": "맘카페",
}

# Checked in this order; the first present identifier wins.
IDENTIFIER_SEPARATORS = (
    ("blog_id", "블로그"),
    ("cafe_id", "카페"),
    ("material_id", "소재"),
)

ATTRIBUTION_PARAMS = ("utm_source", "material_id", "blog_id", "cafe_id")


def source_display_name(utm_source: str) -> str:
    return SOURCE_DISPLAY_NAMES.get(utm_source, utm_source)


def format_click_source(
    campaign: str,
    utm_source: str,
    material_id: Optional[str] = None,
    blog_id: Optional[str] = None,
    cafe_id: Optional[str] = None,
) -> str:
    """
    Build the attribution label for one page view.

    ``kakao`` with material ``42`` on the ``바로폼`` campaign becomes
    ``바로폼_카카오_소재_42``; with no identifier it is ``바로폼_카카오``.
    """
    label = f"{campaign}_{source_display_name(utm_source)}"
    identifiers = {
        "blog_id": blog_id,
        "cafe_id": cafe_id,
        "material_id": material_id,
    }
    for key, separator in IDENTIFIER_SEPARATORS:
        value = identifiers[key]
        if value:
            return f"{label}_{separator}_{value}"
    return label


def resolve_click_source(campaign: str, params: Mapping[str, str]) -> str:
    """Read the attribution parameters once; without a source the campaign alone is used."""
    utm_source = params.get("utm_source")
    if not utm_source:
        return campaign
    return format_click_source(
        campaign,
        utm_source,
        material_id=params.get("material_id"),
        blog_id=params.get("blog_id"),
        cafe_id=params.get("cafe_id"),
    )
