from datetime import datetime, timedelta, timezone
from facilityhub.core.clock import as_naive_utc, month_bounds
from facilityhub.core.pagination import PageParams, build_meta, paginate_list, parse_pagination


def test_defaults_when_missing():
    params = parse_pagination()
    assert params == PageParams(page=1, limit=10)

def test_garbage_falls_back_to_defaults():
    assert parse_pagination("abc", "xyz") == PageParams(page=1, limit=10)
    assert parse_pagination("0", "0") == PageParams(page=1, limit=10)

def test_clamping():
    assert parse_pagination("-3", "1000") == PageParams(page=1, limit=100)
    assert parse_pagination(4, -2) == PageParams(page=4, limit=1)

def test_meta_flags():
    meta = build_meta(25, PageParams(page=2, limit=10))
    assert meta.total_pages == 3
    assert meta.has_next_page is True
    assert meta.has_prev_page is True

    last = build_meta(25, PageParams(page=3, limit=10))
    assert last.has_next_page is False

    empty = build_meta(0, PageParams())
    assert empty.total_pages == 0
    assert empty.has_next_page is False

def test_paginate_list_slices():
    items, meta = paginate_list(list(range(7)), PageParams(page=2, limit=3))
    assert items == [3, 4, 5]
    assert meta.total == 7


def test_month_bounds_wrap_year():
    start, end = month_bounds(datetime(2030, 1, 15), months_back=1)
    assert start == datetime(2029, 12, 1)
    assert end == datetime(2030, 1, 1)

def test_aware_datetimes_become_naive_utc():
    aware = datetime(2030, 1, 10, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert as_naive_utc(aware) == datetime(2030, 1, 10, 10, 0)
    assert as_naive_utc(None) is None
