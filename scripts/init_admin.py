"""Script to create the permissions, default roles and the admin user."""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.database import AsyncSessionLocal, init_db  # noqa: E402
from app.logging_config import setup_logging  # noqa: E402
from app.services.bootstrap_service import populate_admin_and_permissions  # noqa: E402


async def init_admin():
    """Create tables if needed, then seed the admin account."""
    await init_db(bootstrap=False)
    async with AsyncSessionLocal() as db:
        admin_user = await populate_admin_and_permissions(db)

    print("✓ Admin user ready")
    print("\n" + "=" * 50)
    print(f"  Username: {admin_user.username}")
    print("  Password: set from DEFAULT_ADMIN_PASSWORD on first creation")
    print("=" * 50)


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_admin())
