"""
Bootstrap script for seeding roles and creating the initial admin user.

Idempotent: skips if resources already exist.
Run via: python -m charityshelter.cli.bootstrap

Reads configuration from environment variables:
  CHARITYSHELTER_BOOTSTRAP_ADMIN_EMAIL - Admin email (required)
  CHARITYSHELTER_REDIS_URL             - Redis connection URL (optional)
"""

import asyncio
import logging
import os
import sys
import uuid
from datetime import UTC, datetime

import redis.asyncio as aioredis

from charityshelter.auth.api_keys import create_api_key
from charityshelter.auth.system_roles import SUPERADMIN_ROLE
from charityshelter.config import settings
from charityshelter.kv.protocol import UserRecord
from charityshelter.kv.roles import RedisRoleStore
from charityshelter.kv.users import RedisUserStore
from charityshelter.services.role_service import initialize_roles

# Use stdlib logging; structlog isn't configured yet during bootstrap
logger = logging.getLogger("charityshelter.bootstrap")
logging.basicConfig(level=logging.INFO, format="%(message)s")


async def bootstrap() -> None:
    admin_email = os.environ.get("CHARITYSHELTER_BOOTSTRAP_ADMIN_EMAIL", "").strip()
    if not admin_email:
        logger.error("CHARITYSHELTER_BOOTSTRAP_ADMIN_EMAIL is required")
        sys.exit(1)

    redis = aioredis.from_url(str(settings.redis_url), decode_responses=True)
    try:
        await redis.ping()
        logger.info("Connected to Redis")

        seeded = await initialize_roles(RedisRoleStore(redis))
        if seeded:
            logger.info("Seeded %d system roles", seeded)
        else:
            logger.info("Roles already present, skipping role seeding")

        users = RedisUserStore(redis)
        if await users.find_by_email(admin_email) is not None:
            logger.info("User %s already exists, skipping user creation", admin_email)
        else:
            now = datetime.now(UTC).isoformat()
            admin = UserRecord(
                id=str(uuid.uuid4()),
                email=admin_email,
                username="admin",
                roles=[SUPERADMIN_ROLE],
                extra={"firstName": "Admin", "lastName": "User", "createdAt": now, "updatedAt": now},
            )
            await users.put(admin)
            logger.info("Created user %s with role %s", admin_email, SUPERADMIN_ROLE)

            _, raw_key = await create_api_key(redis, admin.id, description="Default Admin API Key")
            logger.info("API key: %s", raw_key)
            logger.warning("IMPORTANT: Save this API key now. It will not be shown again.")
    finally:
        await redis.aclose()

    logger.info("Bootstrap complete")


if __name__ == "__main__":
    asyncio.run(bootstrap())
