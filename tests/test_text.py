from guide_bot.ui.text import bullets, chunk_text, clip, is_url


def test_is_url():
    assert is_url("https://i.imgur.com/a.png")
    assert is_url(" http://example.com/x ")
    assert not is_url("i.imgur.com/a.png")
    assert not is_url("ftp://example.com/file")
    assert not is_url("")
    assert not is_url(None)


def test_bullets():
    assert bullets(["a", "b"]) == "• a\n• b"
    assert bullets([]) == "None listed"
    assert bullets([], empty="-") == "-"


def test_chunk_text_short_value_is_one_chunk():
    assert chunk_text("  hello  ") == ["hello"]
    assert chunk_text("") == []


def test_chunk_text_prefers_line_breaks():
    text = "a" * 80 + "\n" + "b" * 50
    chunks = chunk_text(text, limit=100)
    assert chunks == ["a" * 80, "b" * 50]


def test_chunk_text_falls_back_to_spaces_then_hard_cuts():
    words = " ".join(["word"] * 60)
    chunks = chunk_text(words, limit=100)
    assert all(len(c) <= 100 for c in chunks)
    assert all(not c.endswith("wor") for c in chunks)
    assert " ".join(chunks) == words

    solid = "x" * 250
    assert chunk_text(solid, limit=100) == ["x" * 100, "x" * 100, "x" * 50]


def test_clip():
    assert clip("short", 10) == "short"
    assert clip("abcdefghij", 5) == "abcd…"
