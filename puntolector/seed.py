"""
Seed reference data.

Run ``python -m puntolector.seed`` to create the tables of the database
configured by ``DATABASE_URL`` and insert the default nationalities.
Running it again only adds the rows that are missing.
"""

import logging
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import settings
from .database import init_schema, make_engine, make_session_factory
from .models import Nationality


logger = logging.getLogger(__name__)

# (name, ISO 3166-1 alpha-2 code)
NATIONALITIES: List[Tuple[str, str]] = [
    ("Argentina", "AR"),
    ("Chile", "CL"),
    ("Colombia", "CO"),
    ("Cuba", "CU"),
    ("España", "ES"),
    ("Estados Unidos", "US"),
    ("Francia", "FR"),
    ("México", "MX"),
    ("Perú", "PE"),
    ("Reino Unido", "GB"),
    ("Uruguay", "UY"),
]


def _flag_url(code: str) -> str:
    return f"https://flagcdn.com/w40/{code.lower()}.png"


def seed_nationalities(session: Session) -> int:
    """Insert missing nationalities; returns how many rows were added."""
    existing = set(session.scalars(select(Nationality.name)).all())
    added = 0
    for name, code in NATIONALITIES:
        if name in existing:
            continue
        session.add(Nationality(name=name, country_code=code, flag_url=_flag_url(code)))
        added += 1
    session.flush()
    return added


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL)
    engine = make_engine(settings.DATABASE_URL)
    init_schema(engine)
    factory = make_session_factory(engine)
    with factory() as session, session.begin():
        added = seed_nationalities(session)
    logger.info("Seed completed: %d nationalities added", added)
    engine.dispose()


if __name__ == "__main__":
    main()
