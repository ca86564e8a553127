"""Create the initial SUPER_ADMIN account."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import SessionLocal, close_engine
from app.core.enums import AdminRoleEnum, AuditActionEnum
from app.core.security import hash_password
from app.modules.admin_auth.schemas import check_password_policy
from app.modules.admin_users.repository import AdminUserRepository
from app.modules.admin_users.service import generate_temporary_password
from app.modules.audit.repository import AuditRepository
from app.modules.audit.service import ADMIN_USERS_RESOURCE, AuditService

DEFAULT_EMAIL = "admin@stableride.com"


@dataclass(slots=True)
class BootstrapResult:
    email: str
    created: bool
    password: str | None = None


async def _create_super_admin(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
) -> BootstrapResult:
    repository = AdminUserRepository(session)
    if await repository.get_by_email(email) is not None:
        return BootstrapResult(email=email, created=False)

    admin = await repository.create(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=AdminRoleEnum.SUPER_ADMIN,
    )
    await AuditService(AuditRepository(session)).record(
        AuditActionEnum.ADMIN_USER_CREATED,
        actor_id=None,
        resource_type=ADMIN_USERS_RESOURCE,
        resource_id=admin.id,
        details={"email": email, "role": str(AdminRoleEnum.SUPER_ADMIN), "source": "bootstrap_script"},
    )
    return BootstrapResult(email=email, created=True, password=password)


async def _run(args: argparse.Namespace) -> BootstrapResult:
    email = args.email.strip().lower()
    password = args.password or generate_temporary_password()
    check_password_policy(password)

    async with SessionLocal() as session:
        try:
            result = await _create_super_admin(
                session,
                email=email,
                password=password,
                first_name=args.first_name,
                last_name=args.last_name,
            )
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    return result


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"Create the first SUPER_ADMIN account for {get_settings().app_name}.",
    )
    parser.add_argument("--email", default=DEFAULT_EMAIL, help="Admin email (default: %(default)s).")
    parser.add_argument(
        "--password",
        default=None,
        help="Initial password. A random one is generated and printed when omitted.",
    )
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    return parser


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        result = asyncio.run(_run(args))
    except Exception as exc:
        print(f"Super admin bootstrap failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    if not result.created:
        print(f"Admin account already exists: {result.email}")
        return 0

    print("Super admin created.")
    print(f"- Email: {result.email}")
    if args.password is None:
        print(f"- Temporary password: {result.password}")
    print("Change the password after the first login.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
