from storefront.client.session import ClientSession


def test_in_memory_session():
    session = ClientSession()
    assert not session.is_authenticated
    assert session.read_user() is None

    session.write_token("abc")
    session.write_user({"fullName": "Asha"})
    assert session.is_authenticated
    assert session.read_user() == {"fullName": "Asha"}

    session.clear()
    assert not session.is_authenticated
    assert session.read_user() is None


def test_read_user_returns_a_copy():
    session = ClientSession()
    session.write_user({"fullName": "Asha"})
    session.read_user()["fullName"] = "Changed"
    assert session.read_user()["fullName"] == "Asha"


def test_session_persists_to_disk(tmp_path):
    path = tmp_path / "session.json"
    session = ClientSession(path)
    session.write_token("abc")
    session.write_user({"email": "a@example.com"})

    restored = ClientSession(path)
    assert restored.read_token() == "abc"
    assert restored.read_user() == {"email": "a@example.com"}

    restored.clear()
    assert not path.exists()
    assert not ClientSession(path).is_authenticated


def test_unreadable_session_file_is_ignored(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")
    assert ClientSession(path).read_user() is None
