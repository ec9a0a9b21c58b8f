from cqplugins.nsfw import Classification, auto_judge, judge


def test_judge_neutral_is_ordinary():
    assert judge(Classification(neutral=0.9)) == "普通哦"


def test_judge_drawing_with_tags():
    result = judge(Classification(drawings=0.6, hentai=0.5, neutral=0.1))
    words = result.split()
    assert words[0] == "二次元"
    assert words[1:] == ["hentai"]


def test_judge_low_neutral_counts_as_drawing():
    result = judge(Classification(drawings=0.0, neutral=0.1, porn=0.8))
    assert result.split() == ["二次元", "porn"]


def test_judge_exact_threshold_is_real_photo():
    result = judge(Classification(drawings=0.1, neutral=0.3))
    assert result == "三次元"


def test_judge_tag_order():
    result = judge(Classification(hentai=0.4, porn=0.4, sexy=0.4))
    assert result.split()[1:] == ["hentai", "porn", "hso"]


def test_auto_judge_silent_for_neutral():
    assert auto_judge(Classification(neutral=0.5, porn=0.9)) is None


def test_auto_judge_silent_without_tags():
    assert auto_judge(Classification(drawings=0.9, neutral=0.05)) is None


def test_auto_judge_uses_drawings_only():
    result = auto_judge(Classification(drawings=0.1, neutral=0.1, sexy=0.9))
    assert result.split() == ["三次元", "hso"]
    result = auto_judge(Classification(drawings=0.9, neutral=0.1, sexy=0.9))
    assert result.split() == ["二次元", "hso"]