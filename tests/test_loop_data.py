from datetime import datetime, timedelta, timezone
from email.utils import formatdate, parsedate_to_datetime

import pytest

from uwscore.loop_data import LoopData, format_http_date


def test_epoch_is_formatted_as_http_date():
    assert format_http_date(0) == "Thu, 01 Jan 1970 00:00:00 GMT"


@pytest.mark.parametrize("stamp", [0, 86399, 951782400, 1234567890, 1700000000, 4102444799])
def test_matches_standard_library_format(stamp):
    assert format_http_date(stamp) == formatdate(stamp, usegmt=True)


@pytest.mark.parametrize("stamp", [1, 1000000000, 1650000000])
def test_round_trip_through_parser(stamp):
    text = format_http_date(stamp)
    parsed = parsedate_to_datetime(text)
    assert parsed == datetime.fromtimestamp(stamp, tz=timezone.utc)


def test_naive_datetime_is_taken_as_utc():
    naive = datetime(2021, 3, 4, 5, 6, 7)
    aware = naive.replace(tzinfo=timezone.utc)
    assert format_http_date(naive) == format_http_date(aware)


def test_aware_datetime_is_converted_to_utc():
    offset = timezone(timedelta(hours=2))
    local = datetime(2021, 3, 4, 7, 6, 7, tzinfo=offset)
    utc = datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    assert format_http_date(local) == format_http_date(utc)


def test_date_is_set_on_creation():
    data = LoopData()
    assert data.date.endswith(" GMT")
    assert len(data.date) == 29
    parsedate_to_datetime(data.date)


def test_update_date_sets_and_returns():
    data = LoopData()
    result = data.update_date(1234567890)
    assert result == data.date
    assert data.date == formatdate(1234567890, usegmt=True)


def test_cork_buffer_has_fixed_size():
    data = LoopData()
    assert len(data.cork_buffer) == 16 * 1024
    assert data.cork_offset == 0
    assert data.corked_socket is None


def test_instances_do_not_share_state():
    first = LoopData()
    second = LoopData()
    first.defer_queues[0].append(lambda: None)
    first.post_handlers["key"] = lambda loop: None
    assert second.defer_queues[0] == []
    assert second.post_handlers == {}
    assert first.cork_buffer is not second.cork_buffer