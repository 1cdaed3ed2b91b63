"""
Wayfarer Backend - Database Seed
==================================

What:  Bootstraps a fresh deployment: the ADMIN account and, on request, a
       handful of sample spots with lodgings.
Why:   POST /auth/register only ever creates USER accounts, so admin-only
       routes (bulk import) would otherwise need hand-written SQL.
How:   Runs against the same async engine the app uses. Safe to run again:
       an existing admin email is promoted instead of duplicated, and sample
       spots are matched by name.

Usage:
    wayfarer-seed                 # admin from ADMIN_EMAIL / ADMIN_PASSWORD
    wayfarer-seed --samples       # plus sample spots and lodgings

Run `alembic upgrade head` first; this command does not create tables.
"""

import argparse
import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wayfarer.config import settings
from wayfarer.database import build_engine, build_session_factory
from wayfarer.models import ROLE_ADMIN, Lodging, TouristSpot, User
from wayfarer.security import hash_password

logger = logging.getLogger(__name__)


SAMPLE_SPOTS = [
    {
        "name": "Christ the Redeemer",
        "description": "Art Deco statue of Jesus Christ overlooking Rio de Janeiro from atop Mount Corcovado.",
        "city": "Rio de Janeiro",
        "state": "RJ",
        "country": "Brazil",
        "lat": Decimal("-22.951916"),
        "lng": Decimal("-43.210487"),
        "address": "Parque Nacional da Tijuca - Alto da Boa Vista",
    },
    {
        "name": "Sugarloaf Mountain",
        "description": "Peak rising 396 meters above the harbor with cable car access and views over the bay.",
        "city": "Rio de Janeiro",
        "state": "RJ",
        "country": "Brazil",
        "lat": Decimal("-22.948658"),
        "lng": Decimal("-43.157406"),
        "address": "Av. Pasteur, 520 - Urca",
    },
    {
        "name": "Iguazu Falls",
        "description": "Waterfall system on the border of Argentina and Brazil, one of the largest in the world.",
        "city": "Foz do Iguaçu",
        "state": "PR",
        "country": "Brazil",
        "lat": Decimal("-25.695263"),
        "lng": Decimal("-54.436892"),
        "address": "Parque Nacional do Iguaçu",
    },
    {
        "name": "Fernando de Noronha",
        "description": "Volcanic archipelago with clear waters and rich marine life, a UNESCO World Heritage Site.",
        "city": "Fernando de Noronha",
        "state": "PE",
        "country": "Brazil",
        "lat": Decimal("-3.854492"),
        "lng": Decimal("-32.426487"),
        "address": "Arquipélago de Fernando de Noronha",
    },
    {
        "name": "Copacabana Beach",
        "description": "Four kilometre beach in Rio de Janeiro known for beach volleyball and its promenade.",
        "city": "Rio de Janeiro",
        "state": "RJ",
        "country": "Brazil",
        "lat": Decimal("-22.971177"),
        "lng": Decimal("-43.182543"),
        "address": "Av. Atlântica - Copacabana",
    },
]

# Keyed by the name of the spot each lodging belongs to
SAMPLE_LODGINGS = {
    "Christ the Redeemer": {
        "name": "Belmond Copacabana Palace",
        "address": "Av. Atlântica, 1702 - Copacabana",
        "phone": "+55 21 2548-7070",
        "avg_price": Decimal("850.00"),
        "type": "Hotel",
        "booking_link": "https://www.belmond.com/hotels/south-america/brazil/rio-de-janeiro/belmond-copacabana-palace/",
    },
    "Sugarloaf Mountain": {
        "name": "Yoo2 Rio de Janeiro",
        "address": "Praia de Botafogo, 242 - Botafogo",
        "phone": "+55 21 2131-1000",
        "avg_price": Decimal("320.00"),
        "type": "Hotel",
        "booking_link": "https://www.yoo2rio.com/",
    },
    "Iguazu Falls": {
        "name": "Belmond Hotel das Cataratas",
        "address": "Rodovia BR-469, Km 32 - Parque Nacional do Iguaçu",
        "phone": "+55 45 2102-7000",
        "avg_price": Decimal("950.00"),
        "type": "Hotel",
        "booking_link": None,
    },
}


class SeedError(Exception):
    """The seed cannot proceed with the given configuration."""


@dataclass
class SeedResult:
    admin: User
    admin_created: bool
    spots_created: int = 0
    lodgings_created: int = 0


async def ensure_admin(
    db: AsyncSession,
    email: str,
    password: str,
    login: str = "admin",
) -> Tuple[User, bool]:
    """
    Create the admin account, or promote an existing account with that email.

    An existing account keeps its password. Returns (user, created).

    Raises:
        SeedError: no account exists and no password was given
    """
    email = email.strip().lower()
    result = await db.execute(select(User).where(func.lower(User.email) == email))
    user = result.scalar_one_or_none()

    if user is not None:
        if user.role != ROLE_ADMIN:
            logger.info("Promoting existing user %s to %s", user.id, ROLE_ADMIN)
            user.role = ROLE_ADMIN
            await db.commit()
        return user, False

    if len(password) < 8:
        raise SeedError("ADMIN_PASSWORD must be set (at least 8 characters) to create the admin account")

    user = User(login=login, email=email, password_hash=hash_password(password), role=ROLE_ADMIN)
    db.add(user)
    await db.commit()
    logger.info("Admin account created: %s", user.id)
    return user, True


async def seed_sample_data(db: AsyncSession, owner: User) -> Tuple[int, int]:
    """
    Insert the sample spots that do not exist yet (matched by name), each with
    its sample lodging. Ratings are left empty so every average starts at 0.

    Returns (spots_created, lodgings_created).
    """
    names = [spot["name"] for spot in SAMPLE_SPOTS]
    existing = set((await db.execute(select(TouristSpot.name).where(TouristSpot.name.in_(names)))).scalars())

    spots_created = lodgings_created = 0
    for values in SAMPLE_SPOTS:
        if values["name"] in existing:
            continue
        spot = TouristSpot(**values, created_by=owner.id)
        db.add(spot)
        await db.flush()
        spots_created += 1

        lodging = SAMPLE_LODGINGS.get(spot.name)
        if lodging is not None:
            db.add(Lodging(**lodging, spot_id=spot.id))
            lodgings_created += 1

    await db.commit()
    logger.info("Sample data: %d spots, %d lodgings created", spots_created, lodgings_created)
    return spots_created, lodgings_created


async def run_seed(
    session_factory: async_sessionmaker[AsyncSession],
    samples: bool = False,
    email: Optional[str] = None,
    password: Optional[str] = None,
    login: Optional[str] = None,
) -> SeedResult:
    async with session_factory() as session:
        admin, created = await ensure_admin(
            session,
            email or settings.admin_email,
            settings.admin_password if password is None else password,
            login or settings.admin_login,
        )
        result = SeedResult(admin=admin, admin_created=created)
        if samples:
            result.spots_created, result.lodgings_created = await seed_sample_data(session, admin)
    return result


async def _main(samples: bool) -> SeedResult:
    engine = build_engine()
    try:
        return await run_seed(build_session_factory(engine), samples=samples)
    finally:
        await engine.dispose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wayfarer-seed",
        description="Create the Wayfarer admin account and optional sample data.",
    )
    parser.add_argument("--samples", action="store_true", help="Also insert sample spots and lodgings")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    try:
        result = asyncio.run(_main(args.samples))
    except SeedError as e:
        logger.error("%s", e)
        return 1

    action = "created" if result.admin_created else "already present"
    logger.info("Admin %s (%s)", result.admin.email, action)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
