from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.school_portal.school_portal.core.constants import USER_ID_HEADER
from src.school_portal.school_portal.database.bootstrap import DEMO_PROFILES, ensure_demo_profiles


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ids = ensure_demo_profiles(db_config)
    for (email, _, role), profile_id in zip(DEMO_PROFILES, ids):
        print(f"{role:<9} {email:<24} {USER_ID_HEADER}: {profile_id}")


if __name__ == "__main__":
    main()
