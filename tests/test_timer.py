import pytest

from cqplugins.timer import (
    Timer,
    chinese_char_to_int,
    chinese_num_to_int,
    get_filled_cron_timer,
    get_filled_timer,
)


def _strs(month, day_week, hour, minute, url="", alert="hi"):
    return ["", month, day_week, hour, minute, url, alert]


@pytest.mark.parametrize("field", ["month", "day", "week", "hour", "minute"])
@pytest.mark.parametrize("value", [-1, 1, 5])
def test_field_round_trip(field, value):
    t = Timer()
    setattr(t, field, value)
    assert getattr(t, field) == value


def test_fields_are_independent():
    t = Timer()
    t.month = 11
    t.day = 30
    t.week = 3
    t.hour = 22
    t.minute = 59
    t.enabled = True
    assert (t.month, t.day, t.week, t.hour, t.minute) == (11, 30, 3, 22, 59)
    t.enabled = False
    assert not t.enabled
    assert (t.month, t.day, t.week, t.hour, t.minute) == (11, 30, 3, 22, 59)


def test_cron_info_and_id():
    t = Timer(group_id=5, cron="0 8 * * *")
    assert t.timer_info() == "[5]0 8 * * *"
    other = Timer(group_id=6, cron="0 8 * * *")
    assert t.timer_id() == Timer(group_id=5, cron="0 8 * * *").timer_id()
    assert t.timer_id() != other.timer_id()
    assert 0 <= t.timer_id() < 2**32


def test_date_info_format():
    t = Timer(group_id=7)
    t.month = 3
    t.day = -1
    t.week = -1
    t.hour = 8
    t.minute = 30
    assert t.timer_info() == "[7]3月-1日-1周8:30"


def test_message_segments():
    plain = Timer(alert="wake up")
    assert plain.message() == [
        {"type": "at", "data": {"qq": "all"}},
        {"type": "text", "data": {"text": "wake up"}},
    ]
    with_image = Timer(alert="wake up", url="http://img.example.com/a.png")
    assert with_image.message()[-1] == {
        "type": "image",
        "data": {"file": "http://img.example.com/a.png", "cache": "0"},
    }


def test_chinese_numbers():
    assert chinese_num_to_int("十二") == chinese_num_to_int("12")
    assert chinese_num_to_int("二十三") == chinese_num_to_int("23")
    assert chinese_num_to_int("每二") == -2
    assert chinese_num_to_int("每") == -1
    assert chinese_num_to_int("十") == chinese_num_to_int("10")
    with pytest.raises(ValueError):
        chinese_num_to_int("")


def test_chinese_chars():
    assert chinese_char_to_int("天") == 7
    assert chinese_char_to_int("日") == 7
    assert chinese_char_to_int("九") == chinese_num_to_int("9")
    assert chinese_char_to_int("周") == 0


def test_filled_timer_with_digits():
    t = get_filled_timer(
        _strs("3", "15日", "8", "30", "用http://img.example.com/a.png", "hi"), 42, 99, False
    )
    assert (t.month, t.day, t.hour, t.minute) == (3, 15, 8, 30)
    assert t.url == "http://img.example.com/a.png"
    assert t.alert == "hi"
    assert t.enabled
    assert (t.self_id, t.group_id) == (42, 99)


def test_filled_timer_chinese_equals_digits():
    a = get_filled_timer(_strs("十二", "二十三日", "二十三", "五十九"), 0, 1, False)
    b = get_filled_timer(_strs("12", "23日", "23", "59"), 0, 1, False)
    assert a.emdwhm == b.emdwhm
    assert a.timer_id() == b.timer_id()


def test_filled_timer_weeks():
    every = get_filled_timer(_strs("每", "每周", "8", "0"), 0, 1, False)
    assert every.week == -1
    assert every.month == -1
    sunday = get_filled_timer(_strs("1", "周天", "8", "0"), 0, 1, False)
    assert sunday.week == chinese_num_to_int("零")


def test_match_date_only_is_not_enabled():
    t = get_filled_timer(_strs("5", "每周", "8", "0"), 1, 2, True)
    assert not t.enabled
    assert t.alert == ""
    assert t.group_id == 2


@pytest.mark.parametrize(
    "strs,message",
    [
        (_strs("13", "1日", "8", "0"), "月份"),
        (_strs("1", "32日", "8", "0"), "日期"),
        (_strs("1", "周八", "8", "0"), "星期"),
        (_strs("1", "1日", "24", "0"), "小时"),
        (_strs("1", "1日", "8", "60"), "分钟"),
        (_strs("1", "1日", "8", "0", "用ftp://x.example.com"), "url"),
    ],
)
def test_invalid_fields(strs, message):
    with pytest.raises(ValueError, match=message):
        get_filled_timer(strs, 0, 0, False)


def test_filled_cron_timer():
    t = get_filled_cron_timer("0 8 * * *", "morning", "", 1, 2)
    assert t.cron == "0 8 * * *"
    assert t.alert == "morning"
    assert (t.self_id, t.group_id) == (1, 2)
    assert not t.enabled