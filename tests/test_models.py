import json
import logging
from datetime import timedelta

from playground.models import (
    Credentials,
    decode_each,
    get_messages,
    get_printout_items,
    key_credentials,
    key_endpoint,
    key_message,
    key_printout,
)


def test_keys_do_not_collide():
    assert key_printout("1") == "printout/1"
    assert key_message("app_1", "msg_1") == "app_1/message/msg_1"
    assert key_endpoint("app_1") == "app_1/ep"
    assert key_credentials("app_1") == "credentials/app_1/wsc"


def test_credentials_dict_round_trip():
    creds = Credentials(app_id="app_1", user="u", password="p")

    assert creds.to_dict() == {"app_id": "app_1", "user": "u", "password": "p"}
    assert Credentials.from_dict(creds.to_dict()) == creds


def test_decode_each_skips_malformed(caplog):
    raw = ['{"a": 1}', "{oops", '{"app_id": "x"}', '{"app_id": "y", "user": "u", "password": "p"}']

    with caplog.at_level(logging.WARNING):
        plain = list(decode_each(raw))
        typed = list(decode_each(raw, into=Credentials.from_dict))

    assert plain == [{"a": 1}, {"app_id": "x"}, {"app_id": "y", "user": "u", "password": "p"}]
    assert typed == [Credentials(app_id="y", user="u", password="p")]
    assert "Skipping malformed record" in caplog.text


def test_get_messages_per_app(store):
    ttl = timedelta(hours=24)
    store.set_string_expire(key_message("app_1", "msg_1"), json.dumps({"id": "msg_1"}), ttl)
    store.set_string_expire(key_message("app_1", "msg_2"), json.dumps({"id": "msg_2"}), ttl)
    store.set_string_expire(key_message("app_1", "msg_3"), "garbage", ttl)
    store.set_string_expire(key_message("app_2", "msg_9"), json.dumps({"id": "msg_9"}), ttl)

    assert get_messages(store, "app_1") == [{"id": "msg_2"}, {"id": "msg_1"}]
    assert get_messages(store, "app_unknown") == []


def test_get_printout_items(store):
    store.set_string_expire(key_printout("100"), json.dumps({"method": "POST"}), timedelta(hours=1))
    store.set_string_expire(key_printout("200"), json.dumps({"method": "PUT"}), timedelta(hours=1))

    assert [item["method"] for item in get_printout_items(store)] == ["PUT", "POST"]
