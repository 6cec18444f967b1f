"""Drive the service layer without Flask: review the oldest pending payment."""

import importlib

from config import get_settings_module

from src.school_portal.school_portal.common.context import RequestContext
from src.school_portal.school_portal.container import build_container
from src.school_portal.school_portal.core.enums import Role


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        upload_dir=settings.UPLOAD_DIR,
        upload_base_url=settings.UPLOAD_BASE_URL,
    )
    admins = [p for p in container.store.select("profiles", {"role": Role.ADMIN.value}, limit=1)]
    if not admins:
        raise SystemExit("No admin profile; run scripts/seed_db.py first")
    ctx = RequestContext(user_id=str(admins[0]["id"]), role=Role.ADMIN)

    pending = container.fee_service.list_payments(ctx, status="pending")
    if not pending:
        print("No pending payments")
        return
    batch = container.fee_service.review_payment(ctx, pending[-1].id, "approved", "Verified against bank statement")
    print(batch.id, batch.status.value)


if __name__ == "__main__":
    main()
