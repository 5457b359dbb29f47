import json
import threading

from playground.models import Credentials, key_credentials
from playground.registry import ClientRegistry


def test_register_and_get():
    registry = ClientRegistry()
    client = object()
    registry.register("app_1", client)

    assert registry.get("app_1") is client
    assert "app_1" in registry
    assert len(registry) == 1


def test_get_unknown_returns_none():
    registry = ClientRegistry()

    assert registry.get("app_missing") is None
    assert "app_missing" not in registry


def test_concurrent_registration():
    registry = ClientRegistry()
    barrier = threading.Barrier(16)

    def worker(n):
        barrier.wait()
        for i in range(50):
            registry.register(f"app_{n}_{i}", object())

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(registry) == 16 * 50
    assert registry.app_ids() == sorted(f"app_{n}_{i}" for n in range(16) for i in range(50))


def test_load_reloads_persisted_credentials(store, caplog):
    for app_id in ("app_a", "app_b"):
        store.set(key_credentials(app_id), Credentials(app_id=app_id, user=f"{app_id}_user", password="pw").to_dict())
    store.set_string(key_credentials("app_malformed"), "{not json")
    store.set(key_credentials("app_rejected"), {"app_id": "app_rejected", "user": "rejected", "password": "pw"})
    store.set("app_a/ep", {"secret_key": "not a credential"})

    made = []

    def factory(user, password):
        if user == "rejected":
            raise ValueError("bad credentials")
        made.append((user, password))
        return {"user": user}

    registry = ClientRegistry()
    loaded = registry.load(store, factory)

    assert loaded == 2
    assert registry.app_ids() == ["app_a", "app_b"]
    assert registry.get("app_b") == {"user": "app_b_user"}
    assert sorted(made) == [("app_a_user", "pw"), ("app_b_user", "pw")]
    assert "bad credentials" in caplog.text


def test_load_with_nothing_persisted(store):
    registry = ClientRegistry()

    assert registry.load(store, lambda user, password: json.dumps([user, password])) == 0
    assert len(registry) == 0
