from datetime import datetime

from counselnote.identity import IdentityGenerator, capture_timestamp


def test_ids_increase_when_clock_stands_still():
    ids = IdentityGenerator(clock=lambda: 1700000000.0)
    issued = [ids.next() for _ in range(5)]
    assert len(set(issued)) == 5
    assert [int(i) for i in issued] == sorted(int(i) for i in issued)
    assert issued[0] == "1700000000000"
    assert issued[-1] == "1700000000004"


def test_ids_never_go_backwards():
    readings = iter([10.0, 9.0, 9.5, 12.0])
    ids = IdentityGenerator(clock=lambda: next(readings))
    values = [int(ids.next()) for _ in range(4)]
    assert values == [10000, 10001, 10002, 12000]


def test_capture_timestamp_format():
    stamp = capture_timestamp(datetime(2026, 3, 4, 9, 5, 7))
    assert stamp == "2026-03-04 09:05:07"
