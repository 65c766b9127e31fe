"""
Grant or revoke the admin role for an existing user.

This is the only path that writes `users.is_admin`; the API never exposes it.

Usage:
  python scripts/grant_admin.py owner@example.com
  python scripts/grant_admin.py owner@example.com --revoke

Uses DATABASE_URL from the environment (or backend/.env).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# --- ensure backend/ is importable when run from a checkout ---
BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from cinestream.database import AsyncSessionLocal, engine  # noqa: E402
from cinestream.errors import NotFoundError  # noqa: E402
from cinestream.services.credentials import get_user_by_email, set_admin_role  # noqa: E402


async def run(email: str, revoke: bool) -> int:
    try:
        async with AsyncSessionLocal() as session:
            user = await get_user_by_email(session, email)
            user = await set_admin_role(session, user.id, not revoke)
    except NotFoundError:
        print(f"No user with email {email!r}")
        return 1
    finally:
        await engine.dispose()

    state = "now" if user.is_admin else "no longer"
    print(f"User {user.username} (id={user.id}) is {state} an administrator.")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("email", help="e-mail address of the account")
    parser.add_argument("--revoke", action="store_true", help="remove the admin role instead")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.email, args.revoke)))


if __name__ == "__main__":
    main()
