"""
Publish Smoke Test (offline)
============================

Runs the FastAPI app via TestClient against the in-memory store, publishes a
few recipes and prints concise outputs.
This does NOT require a running server or a WordPress site.
"""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path

from fastapi.testclient import TestClient

AUTHOR_ID = 1


def extract_json_ld(html: str) -> str | None:
    m = re.search(r'<script type="application/ld\+json">(.+?)</script>', html or "", re.DOTALL)
    return m.group(1) if m else None


def extract_itemprops(html: str) -> list[str]:
    return sorted(set(re.findall(r'itemprop="([^"]+)"', html or "")))


def main() -> int:
    # Force the in-memory store with a known author
    os.environ["DM_RECIPES_STORE_BACKEND"] = "memory"
    os.environ["DM_RECIPES_DEFAULT_POST_AUTHOR"] = str(AUTHOR_ID)

    # Ensure `dm_recipes` and `main` are importable when running as a script
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

    from dm_recipes.core.config import get_settings

    get_settings.cache_clear()

    from main import app

    payloads = [
        {
            "post_title": "Sunday Pancakes",
            "post_content": "<p>Our weekend favourite.</p>",
            "recipeName": "Pancakes",
            "prepTime": "PT10M",
            "cookTime": "PT20M",
            "recipeIngredient": ["1 cup flour", "2 eggs", "1 cup milk"],
            "recipeInstructions": ["Mix", "Rest 10 minutes", "Cook"],
            "category": ["Breakfast"],
            "tags": ["easy", "sweet"],
        },
        {"post_title": "Untitled recipe", "recipeName": "", "recipeIngredient": ["salt"]},
        {"recipeIngredient": ["pepper"]},
    ]

    print("=== Smoke Test (TestClient, in-memory store) ===")
    with TestClient(app) as client:
        for payload in payloads:
            r = client.post("/api/publish", json={"parameters": payload})
            data = r.json()
            print("\n---")
            print("title:", payload.get("post_title"), "| recipe:", payload.get("recipeName"))
            print("HTTP:", r.status_code, "| success:", data.get("success"))
            if not data.get("success"):
                print("error:", data.get("error"))
                continue
            print("post:", data["post_id"], "->", data["post_url"])
            for taxonomy, report in data["taxonomy_results"].items():
                print(f"  {taxonomy}: {report.get('terms')} ({'ok' if report['success'] else report.get('error')})")

            rendered = client.get(f"/api/records/{data['post_id']}/render").json()
            print("itemprops:", ", ".join(extract_itemprops(rendered["html"])))
            print("json-ld:", (extract_json_ld(rendered["html"]) or "")[:160])

        h = client.get("/api/health").json()
    print("\n=== /api/health ===")
    print(h)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
