import csv

import pytest

from cqplugins.hyaku import BED, Poem, image_urls, load_poems

HEADER = ["番号", "歌人", "上の句", "下の句", "上の句ひらがな", "下の句ひらがな"]


def _write(path, rows):
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        writer.writerows(rows)
    return path


def _rows(count=100):
    return [[str(i), f"poet{i}", f"up{i}", f"low{i}", f"uk{i}", f"lk{i}"] for i in range(1, count + 1)]


def test_load_poems(tmp_path):
    poems = load_poems(_write(tmp_path / "h.csv", _rows()))
    assert len(poems) == 100
    assert poems[0] == Poem("1", "poet1", "up1", "low1", "uk1", "lk1")
    assert [p.number for p in poems] == [str(i) for i in range(1, 101)]


def test_load_poems_wrong_count(tmp_path):
    with pytest.raises(ValueError):
        load_poems(_write(tmp_path / "h.csv", _rows(99)))


def test_load_poems_wrong_order(tmp_path):
    rows = _rows()
    rows[0][0], rows[1][0] = rows[1][0], rows[0][0]
    with pytest.raises(ValueError):
        load_poems(_write(tmp_path / "h.csv", rows))


def test_load_poems_wrong_columns(tmp_path):
    rows = _rows()
    rows[5] = rows[5][:5]
    with pytest.raises(ValueError):
        load_poems(_write(tmp_path / "h.csv", rows))


def test_poem_str():
    poem = Poem("1", "天智天皇", "a", "b", "c", "d")
    lines = str(poem).splitlines()
    assert lines[0] == "●番号：1"
    assert lines[1] == "◉歌人：天智天皇"
    assert lines[2].startswith("○上の句")
    assert lines[5] == "◎下の句ひらがな：d"
    assert str(poem).endswith("\n")


def test_image_urls():
    jpg, png = image_urls(7)
    assert jpg == BED + "img/007.jpg"
    assert png == BED + "img/007.png"


@pytest.mark.parametrize("number", [0, 101, -3])
def test_image_urls_out_of_range(number):
    with pytest.raises(ValueError):
        image_urls(number)