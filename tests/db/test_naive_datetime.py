from datetime import datetime, timedelta, timezone

from pydantic import BaseModel

from aremxyplug.db.naive_datetime import NaiveDatetime


def test_naive_datetime_strips_timezone():
    aware_dt = datetime(2025, 3, 12, 16, 34, 0, tzinfo=timezone.utc)
    naive_dt = NaiveDatetime(aware_dt)

    assert naive_dt.tzinfo is None
    assert (naive_dt.year, naive_dt.month, naive_dt.day, naive_dt.hour) == (2025, 3, 12, 16)


def test_naive_datetime_converts_lagos_time_to_utc():
    lagos = timezone(timedelta(hours=1))
    naive_dt = NaiveDatetime(datetime(2025, 3, 12, 17, 0, 0, tzinfo=lagos))

    assert naive_dt.tzinfo is None
    assert naive_dt.hour == 16


def test_naive_datetime_normal_constructor():
    naive_dt = NaiveDatetime(2025, 1, 1, 12, 0, 0)

    assert naive_dt.tzinfo is None
    assert naive_dt == datetime(2025, 1, 1, 12, 0, 0)


def test_naive_datetime_now_is_naive_utc():
    before = datetime.now(timezone.utc).replace(tzinfo=None)
    now = NaiveDatetime.now()
    after = datetime.now(timezone.utc).replace(tzinfo=None)

    assert now.tzinfo is None
    assert before <= now <= after


def test_naive_datetime_in_pydantic_model():
    class Stamp(BaseModel):
        at: NaiveDatetime

    stamp = Stamp(at=datetime(2025, 3, 12, 12, 0, tzinfo=timezone(timedelta(hours=-5))))

    assert stamp.at.tzinfo is None
    assert stamp.at.hour == 17
