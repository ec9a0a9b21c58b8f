import sqlite3

import pytest

from cqplugins import omikuji


def _seed(path, rows):
    db = sqlite3.connect(str(path))
    db.execute("CREATE TABLE kuji(id INTEGER PRIMARY KEY NOT NULL, text TEXT NOT NULL)")
    db.executemany("INSERT INTO kuji(id, text) VALUES (?, ?)", rows)
    db.commit()
    db.close()


def test_image_urls():
    front, back = omikuji.image_urls(7)
    assert front == omikuji.BED % (7, 0)
    assert back == omikuji.BED % (7, 1)
    assert front.endswith("/7_0.jpg")
    assert back.endswith("/7_1.jpg")


def test_get_reading(tmp_path):
    path = tmp_path / "kuji.db"
    _seed(path, [(1, "first reading"), (100, "last reading")])
    with omikuji.KujiStore(path) as store:
        assert store.get(1) == "first reading"
        assert store.get(100) == "last reading"


def test_get_missing(tmp_path):
    with omikuji.KujiStore(tmp_path / "kuji.db") as store:
        with pytest.raises(LookupError):
            store.get(5)


def test_store_creates_table(tmp_path):
    path = tmp_path / "kuji.db"
    omikuji.KujiStore(path).close()
    db = sqlite3.connect(str(path))
    names = [row[0] for row in db.execute("SELECT name FROM sqlite_master WHERE type='table'")]
    db.close()
    assert "kuji" in names