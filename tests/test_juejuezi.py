import json

import pytest
import responses

from cqplugins.juejuezi import JUEJUEZI_URL, REFERER, juejuezi, request_body, split_input


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def test_request_body_round_trip():
    assert json.loads(request_body("喝", "奶茶")) == {"verb": "喝", "noun": "奶茶"}


def test_split_input_two_characters():
    assert split_input("喝茶绝绝子") == ["喝", "茶"]
    assert split_input("绝绝子吃饭") == ["吃", "饭"]


def test_split_input_longer_text():
    assert split_input("喝奶茶绝绝子") == ["喝奶茶"]


@pytest.mark.parametrize("text", ["绝绝子", "吃绝绝子"])
def test_split_input_too_short(text):
    with pytest.raises(ValueError):
        split_input(text)


def test_juejuezi_returns_text(mocked):
    mocked.add(responses.POST, JUEJUEZI_URL, json={"text": "sentence"})
    assert juejuezi("喝", "奶茶") == "sentence"
    request = mocked.calls[0].request
    assert request.headers["Referer"] == REFERER
    assert json.loads(request.body) == {"verb": "喝", "noun": "奶茶"}


def test_juejuezi_bad_reply(mocked):
    mocked.add(responses.POST, JUEJUEZI_URL, body="not json")
    assert juejuezi("a", "b") == ""