"""
Demo content served when nothing has been persisted yet.

These records are placeholders for a fresh deployment. They are never
written to a store and never mixed with persisted records: a public read
returns either stored records or demo records, not both.
"""

from __future__ import annotations

DEMO_PDF_URL = "https://www.w3.org/WAI/ER/tests/xhtml/testfiles/resources/pdf/dummy.pdf"

DEMO_POWER_STONES: tuple[dict, ...] = (
    {"id": "ps-1", "slot": 1, "src": "https://placehold.co/600x400/eab308/ffffff?text=Glory", "title": "Glory"},
    {"id": "ps-2", "slot": 2, "src": "https://placehold.co/600x400/22c55e/ffffff?text=Conquest", "title": "Conquest"},
    {"id": "ps-3", "slot": 3, "src": "https://placehold.co/600x400/8b5cf6/ffffff?text=Feast", "title": "Feast"},
    {"id": "ps-4", "slot": 4, "src": "https://placehold.co/600x400/3b82f6/ffffff?text=Alliance", "title": "Alliance"},
    {"id": "ps-5", "slot": 5, "src": "https://placehold.co/600x400/ef4444/ffffff?text=Council", "title": "Council"},
    {"id": "ps-6", "slot": 6, "src": "https://placehold.co/600x400/14b8a6/ffffff?text=Valor", "title": "Valor"},
)

DEMO_BULLETINS: dict[str, dict] = {
    "ta": {"id": "ta-1", "lang": "ta", "title": "தமிழ் பதிப்பு", "date": "2025-08-01", "pdf": DEMO_PDF_URL},
    "en": {"id": "en-1", "lang": "en", "title": "English Edition", "date": "2025-08-01", "pdf": DEMO_PDF_URL},
    "kn": {"id": "kn-1", "lang": "kn", "title": "Kannada Edition", "date": "2025-08-01", "pdf": DEMO_PDF_URL},
    "ml": {"id": "ml-1", "lang": "ml", "title": "Malayalam Edition", "date": "2025-08-01", "pdf": DEMO_PDF_URL},
    "te": {"id": "te-1", "lang": "te", "title": "Telugu Edition", "date": "2025-08-01", "pdf": DEMO_PDF_URL},
}


def demo_power_stones() -> list[dict]:
    return [dict(stone) for stone in DEMO_POWER_STONES]


def demo_bulletin(lang: str) -> dict:
    return dict(DEMO_BULLETINS.get(lang) or DEMO_BULLETINS["ta"])
