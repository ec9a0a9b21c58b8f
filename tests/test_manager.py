import random

import pytest

from cqplugins.manager import (
    ManagerStore,
    check_new_user,
    gist_url,
    mute_minutes,
    parse_gist_answer,
    pick_lucky_member,
    toggle_gist_approval,
    toggle_join_check,
    unescape_forward,
    welcome_to_cq,
)


@pytest.fixture
def store(tmp_path):
    s = ManagerStore(tmp_path / "config.db")
    yield s
    s.close()


def test_welcome_to_cq_expands_all_placeholders():
    text = welcome_to_cq("{at}|{nickname}|{avatar}|{uid}|{gid}|{groupname}", 12345, "Alice", 678, "Club")
    assert text == (
        "[CQ:at,qq=12345]|Alice|"
        "[CQ:image,file=http://q4.qlogo.cn/g?b=qq&nk=12345&s=640]|12345|678|Club"
    )


def test_welcome_to_cq_plain_text_unchanged():
    assert welcome_to_cq("hello there", 1, "n", 2, "g") == "hello there"


def test_mute_minutes_units():
    assert mute_minutes(5, "分钟") == 5
    assert mute_minutes(2, "小时") == mute_minutes(120, "分钟")
    assert mute_minutes(1, "天") == mute_minutes(24, "小时")
    assert mute_minutes(7, "whatever") == 7


def test_mute_minutes_cap():
    assert mute_minutes(100, "天") == 43199
    assert mute_minutes(43200, "分钟") == 43199


def test_mute_minutes_extended_units():
    assert mute_minutes(3, "h") == 3
    assert mute_minutes(3, "h", True) == mute_minutes(3, "小时")
    assert mute_minutes(2, "days", True) == mute_minutes(2, "天")


def test_unescape_forward():
    assert unescape_forward("&#91;CQ:face,id=1&#93;") == "[CQ:face,id=1]"


def test_parse_gist_answer():
    assert parse_gist_answer("问题：x\n答案：alice/abc123") == ("alice", "abc123")


@pytest.mark.parametrize("comment", ["答案：nouser", "答案：/hash"])
def test_parse_gist_answer_rejects_bad_format(comment):
    with pytest.raises(ValueError, match="格式错误!"):
        parse_gist_answer(comment)


def test_gist_url_shape():
    url = gist_url("alice", "abc", 123)
    prefix = "https://gist.githubusercontent.com/alice/abc/raw/"
    assert url.startswith(prefix)
    name = url[len(prefix):]
    assert len(name) == 32 and all(c in "0123456789abcdef" for c in name)
    assert gist_url("alice", "abc", 124) != url


def test_toggle_join_check_round_trip():
    on = toggle_join_check(0x10, "开启")
    assert on & 1 == 1
    assert toggle_join_check(on, "关闭") == 0x10


def test_toggle_gist_approval():
    on = toggle_gist_approval(0, "启用")
    assert on & 0x10 == 0x10
    assert toggle_gist_approval(0x7FFFFFFF_FFFFFFFF, "禁用") == 0x7FFFFFFF_FFFFFFFD


def test_toggle_unknown_option():
    with pytest.raises(ValueError):
        toggle_join_check(0, "maybe")


def test_pick_lucky_member_from_recent_ten():
    members = [{"user_id": i, "last_sent_time": i * 10} for i in range(15)]
    shuffled = members[:]
    random.Random(1).shuffle(shuffled)
    recent = {m["user_id"] for m in members[5:]}
    for seed in range(30):
        who = pick_lucky_member(shuffled, random.Random(seed))
        assert who["user_id"] in recent


def test_pick_lucky_member_empty():
    with pytest.raises(ValueError):
        pick_lucky_member([], random.Random(0))


def test_store_welcome_and_farewell(store):
    assert store.get_welcome(1) is None
    store.set_welcome(1, "hi {at}")
    store.set_farewell(1, "bye")
    assert store.get_welcome(1) == "hi {at}"
    assert store.get_farewell(1) == "bye"
    store.set_welcome(1, "again")
    assert store.get_welcome(1) == "again"
    assert store.get_farewell(2) is None


def test_store_members(store):
    assert not store.has_member("alice")
    store.add_member(42, "alice")
    assert store.has_member("alice")


def test_check_new_user_accepts_and_records(store):
    seen = []

    def fetch(url):
        seen.append(url)
        return b"1000000"

    assert check_new_user(store, 42, 99, "alice", "h", fetch, 1000100) == (True, "")
    assert seen == [gist_url("alice", "h", 99)]
    assert store.has_member("alice")
    assert check_new_user(store, 43, 99, "alice", "h", fetch, 1000100) == (False, "该github用户已入群")


def test_check_new_user_stale(store):
    result = check_new_user(store, 1, 2, "bob", "h", lambda u: b"1000000", 1000000 + 600)
    assert result == (False, "时间戳超时")
    assert not store.has_member("bob")


def test_check_new_user_bad_timestamp(store):
    assert check_new_user(store, 1, 2, "bob", "h", lambda u: b"abc", 0) == (
        False,
        "时间戳格式错误: abc",
    )


def test_check_new_user_fetch_error(store):
    def fetch(url):
        raise OSError("boom")

    ok, reason = check_new_user(store, 1, 2, "bob", "h", fetch, 0)
    assert not ok
    assert reason == "无法连接到gist: boom"