from sqlalchemy import func, select

from puntolector.models import Nationality
from puntolector.seed import NATIONALITIES, seed_nationalities


def test_seed_nationalities_is_idempotent(session):
    assert seed_nationalities(session) == len(NATIONALITIES)
    assert seed_nationalities(session) == 0
    count = session.execute(select(func.count(Nationality.id))).scalar_one()
    assert count == len(NATIONALITIES)

    argentina = session.scalars(select(Nationality).where(Nationality.name == "Argentina")).one()
    assert argentina.country_code == "AR"
    assert argentina.flag_url.endswith("/ar.png")
