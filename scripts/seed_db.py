"""Seed demo profiles plus one pending PTO request into the configured store."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.pto_tracker.pto_tracker.container import build_container
from src.pto_tracker.pto_tracker.pto.model import PtoRequestInput

DEMO_PROFILES = (
    {"user_id": "demo-manager", "name": "Morgan Lee", "role": "management", "title": "Unit Manager"},
    {"user_id": "demo-employee", "name": "Ana Ruiz", "role": "employee", "title": "Nurse", "manager": "Morgan Lee"},
)


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        org_id=getattr(settings, "ORG_ID", "default-org"),
        store_backend=getattr(settings, "STORE_BACKEND", "memory"),
        db_config=dict(settings.DB_CONFIG),
    )

    for demo in DEMO_PROFILES:
        if container.profile_service.get(demo["user_id"]) is None:
            container.profile_service.setup_profile(company_name="Demo Clinic", **demo)

    result = container.workflow_service.submit_pto_request(
        "demo-employee",
        PtoRequestInput(start_date="2030-01-06", end_date="2030-01-08", leave_type="vacation", notes="Demo"),
    )

    print(
        "OK: Seeded org "
        f"{container.scopes.org_id} ({len(DEMO_PROFILES)} profiles, pto request {result.record_id})"
    )


if __name__ == "__main__":
    main()
