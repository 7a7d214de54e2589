import datetime as dt
import os
import time

import pytest

from app.config import get_settings
from app.errors import QuotaExceeded
from app.services.quota import admit, count_requests_today, daily_limit, local_day_bounds


def _stored(moment):
    return moment.astimezone(dt.timezone.utc).replace(tzinfo=None)


def test_daily_limit_defaults_to_five():
    assert daily_limit() == 5


def test_daily_limit_scales_with_creator_fees():
    settings = get_settings().model_copy(
        update={"CREATOR_FEES": 100.0, "CREATOR_FEE_SCALING_FACTOR": 0.05}
    )
    assert daily_limit(settings) == 10


def test_day_bounds_span_one_local_day(local_noon):
    start, end = local_day_bounds(local_noon)
    assert start <= _stored(local_noon) < end
    assert _stored(local_noon.replace(hour=0)) == start


def test_counts_only_todays_requests_for_user(db_session, make_research, local_noon):
    yesterday = local_noon - dt.timedelta(days=1)
    make_research(user_id="u1", created_at=_stored(local_noon))
    make_research(user_id="u1", created_at=_stored(local_noon.replace(hour=0, minute=1)))
    make_research(user_id="u1", created_at=_stored(yesterday))
    make_research(user_id="u2", created_at=_stored(local_noon))

    assert count_requests_today(db_session, "u1", local_noon) == 2
    assert count_requests_today(db_session, "u2", local_noon) == 1
    assert count_requests_today(db_session, "nobody", local_noon) == 0


def test_admit_allows_under_limit(db_session, make_research, local_noon):
    for _ in range(4):
        make_research(user_id="u1", created_at=_stored(local_noon))
    assert admit(db_session, "u1", local_noon) == 4


def test_admit_denies_sixth_request(db_session, make_research, local_noon):
    for status in ["running", "completed", "failed", "completed", "completed"]:
        make_research(user_id="u1", status=status, created_at=_stored(local_noon))

    with pytest.raises(QuotaExceeded) as excinfo:
        admit(db_session, "u1", local_noon)
    assert excinfo.value.limit == 5
    assert "daily limit of 5" in excinfo.value.message


def test_count_is_exact_beyond_fifty_records(db_session, make_research, local_noon):
    older = local_noon - dt.timedelta(days=3)
    for _ in range(60):
        make_research(user_id="u1", created_at=_stored(older))
    for _ in range(5):
        make_research(user_id="u1", created_at=_stored(local_noon))

    with pytest.raises(QuotaExceeded):
        admit(db_session, "u1", local_noon)


@pytest.fixture
def new_york_tz():
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset unavailable")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "America/New_York"
    time.tzset()
    try:
        if time.tzname[0] != "EST":
            pytest.skip("tz database unavailable")
        yield
    finally:
        if previous is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = previous
        time.tzset()


@pytest.mark.parametrize(
    "day, hours",
    [
        (dt.date(2026, 3, 8), 23),
        (dt.date(2026, 11, 1), 25),
        (dt.date(2026, 6, 15), 24),
    ],
)
def test_day_bounds_follow_dst_transitions(new_york_tz, day, hours):
    noon = dt.datetime.combine(day, dt.time(12))
    start, end = local_day_bounds(noon)
    assert end - start == dt.timedelta(hours=hours)
    assert start == _stored(dt.datetime.combine(day, dt.time()).astimezone())
