"""
Cron entry point: runs one growth sync pass over every barbershop.

    python scripts/run_growth_sync.py            # all tenants
    python scripts/run_growth_sync.py <org_id>   # one tenant

Exits non-zero only when the pass could not run at all; per-tenant failures
are reported in the summary and retried by the next scheduled run.
"""
import asyncio
import json
import logging
import os
import sys
import uuid

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

from app.core.logging import setup_logging
from app.core.db import init_models
from app.modules.growth.service import GrowthSyncService

log = logging.getLogger("growth.cron")

async def main(argv: list[str]) -> int:
    setup_logging()
    await init_models()
    service = GrowthSyncService()
    try:
        if argv:
            summary = await service.sync_tenant(uuid.UUID(argv[0]))
        else:
            summary = await service.run()
    except Exception:
        log.exception("Growth sync could not run")
        return 1
    print(json.dumps(summary.as_dict()))
    return 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
