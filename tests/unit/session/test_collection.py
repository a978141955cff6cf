import pytest

from sessionkit import EXPIRATION_KEY, Collection, ExpiryPolicy, ExpiryState
from sessionkit.errors import InvalidArgument, InvalidConfig


def _next_request(collection: Collection) -> None:
    collection.replace(collection.all())


def test_set_then_get_returns_value_across_other_reads():
    data = Collection()
    data.set("user", {"id": 7})
    data.set("theme", "dark")

    for _ in range(3):
        assert data.get("theme") == "dark"
    assert data.get("user") == {"id": 7}
    assert data.get("missing", "fallback") == "fallback"
    assert data.has("user")
    assert not data.has("missing")


def test_flash_on_get_stays_readable_until_snapshot():
    data = Collection()
    data.set("notice", "Saved", ExpiryPolicy.ON_GET)

    assert data.get("notice") == "Saved"
    assert data.get_expiration("notice") == (ExpiryPolicy.ON_GET, ExpiryState.EXPIRED)
    assert data.get("notice") == "Saved"
    assert data.has("notice")

    snapshot = data.all()

    assert "notice" not in snapshot
    assert "notice" not in snapshot[EXPIRATION_KEY]
    assert data.get("notice", "gone") == "gone"
    assert not data.has("notice")


def test_unread_flash_on_get_survives_load_cycles():
    data = Collection()
    data.set("notice", "Saved", "get")

    _next_request(data)
    assert data.get_expiration("notice") == (ExpiryPolicy.ON_GET, ExpiryState.LOADED)
    _next_request(data)
    assert data.get("notice") == "Saved"

    _next_request(data)
    assert not data.has("notice")


def test_flash_on_request_lives_for_exactly_one_more_load():
    data = Collection()
    data.set("banner", "Welcome back", ExpiryPolicy.ON_REQUEST)

    _next_request(data)
    assert data.get("banner") == "Welcome back"
    assert data.get_expiration("banner") == (ExpiryPolicy.ON_REQUEST, ExpiryState.LOADED)

    _next_request(data)
    assert data.get("banner") is None
    assert data.get_expiration("banner") is None


def test_keep_resets_a_consumed_flash_value():
    data = Collection()
    data.set("notice", "Saved", ExpiryPolicy.ON_GET)
    assert data.get("notice") == "Saved"

    assert data.keep("notice") is True
    assert data.get_expiration("notice") == (ExpiryPolicy.ON_GET, ExpiryState.NEW)

    _next_request(data)
    assert data.get("notice") == "Saved"


def test_keep_without_expiration_record():
    data = Collection()
    data.set("plain", 1)

    assert data.keep("plain") is False
    assert data.keep("absent") is False


def test_namespaces_share_the_flat_store_without_collisions():
    data = Collection()
    data.set_namespace("a")
    data.set("x", 1)
    data.set_namespace("b")
    data.set("x", 2)

    assert sorted(data.keys()) == ["a.x", "b.x"]
    assert data.get("x") == 2
    data.set_namespace("a")
    assert data.get("x") == 1
    assert data.namespace == "a"


@pytest.mark.parametrize("name", ["", None, 3])
def test_set_namespace_rejects_invalid_names(name):
    with pytest.raises(InvalidConfig):
        Collection().set_namespace(name)


def test_unknown_expiration_policy_is_rejected():
    data = Collection()

    with pytest.raises(InvalidArgument):
        data.set("notice", "Saved", "forever")
    assert not data.has("notice")


@pytest.mark.parametrize("key", ["", EXPIRATION_KEY])
def test_empty_and_reserved_keys_are_rejected(key):
    data = Collection()

    with pytest.raises(InvalidArgument):
        data.set(key, 1)
    with pytest.raises(InvalidArgument):
        data.get(key)
    assert key not in data


def test_delete_removes_value_and_expiration_and_is_idempotent():
    data = Collection()
    data.set("notice", "Saved", ExpiryPolicy.ON_GET)

    data.delete("notice")
    data.delete("notice")

    assert not data.has("notice")
    assert data.get_expiration("notice") is None
    assert data.all()[EXPIRATION_KEY] == {}


def test_replace_establishes_index_and_keeps_plain_values():
    data = Collection()
    payload = {"user": "ada", "count": 3}

    data.replace(payload)

    assert data.get("user") == "ada"
    assert data.all()[EXPIRATION_KEY] == {}
    assert EXPIRATION_KEY not in payload


def test_replace_does_not_mutate_its_input():
    payload = {
        "banner": "hi",
        EXPIRATION_KEY: {"banner": [ExpiryPolicy.ON_REQUEST.value, ExpiryState.LOADED.value]},
    }
    data = Collection()

    data.replace(payload)

    assert not data.has("banner")
    assert payload["banner"] == "hi"
    assert "banner" in payload[EXPIRATION_KEY]


def test_stored_expired_value_is_readable_until_pruned():
    data = Collection()
    data.replace({"notice": "Saved", EXPIRATION_KEY: {"notice": ["get", "expired"]}})

    assert data.get("notice") == "Saved"
    assert "notice" not in data.all()


def test_count_keys_and_clear_ignore_the_expiration_index():
    data = Collection()
    data.set_namespace("app")
    data.set("a", 1)
    data.set("b", 2, ExpiryPolicy.ON_GET)

    assert data.count() == 2
    assert len(data) == 2
    assert sorted(data.keys()) == ["app.a", "app.b"]
    assert "a" in data

    data.clear()

    assert data.count() == 0
    assert data.keys() == []
    assert data.namespace == "app"
