"""Identifier scheme: GUID construction, content hashing and namespace checks."""

from __future__ import annotations

import pytest

from media_api.logic.errors import InvalidIdentifier
from media_api.logic.identifiers import guid_for, id_from_hashed_string, resolve_guid, split_and_check_guid


def test_guid_for_joins_namespace_and_local_id() -> None:
    assert guid_for("media", "abc123") == "media/abc123"


@pytest.mark.parametrize("local_id", ["", "a/b", "has space", "tab\there", "nl\n"])
def test_guid_for_rejects_malformed_local_ids(local_id: str) -> None:
    with pytest.raises(InvalidIdentifier):
        guid_for("media", local_id)


@pytest.mark.parametrize("type_tag", ["", "Media", "9media", "me/dia"])
def test_guid_for_rejects_malformed_type_tags(type_tag: str) -> None:
    with pytest.raises(InvalidIdentifier):
        guid_for(type_tag, "abc")


def test_id_from_hashed_string_is_sha256_hex() -> None:
    assert id_from_hashed_string("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_id_from_hashed_string_is_deterministic_and_distinguishing() -> None:
    a1 = id_from_hashed_string("http://x/a.mp3")
    a2 = id_from_hashed_string("http://x/a.mp3")
    b = id_from_hashed_string("http://x/a.mp3 ")

    assert a1 == a2
    assert a1 != b


def test_hashed_id_is_a_valid_local_id() -> None:
    local_id = id_from_hashed_string("http://x/a.mp3")

    assert split_and_check_guid("media", guid_for("media", local_id)) == ("media", local_id)


def test_split_and_check_guid_round_trips_guid_for() -> None:
    assert split_and_check_guid("media", guid_for("media", "x-1")) == ("media", "x-1")


def test_split_and_check_guid_rejects_other_namespace() -> None:
    with pytest.raises(InvalidIdentifier) as info:
        split_and_check_guid("media", guid_for("episode", "x-1"))

    assert info.value.context["expected_type"] == "media"


@pytest.mark.parametrize("raw", ["no-separator", "/abc", "media/", "media/a/b", ""])
def test_split_and_check_guid_rejects_malformed_ids(raw: str) -> None:
    with pytest.raises(InvalidIdentifier):
        split_and_check_guid("media", raw)


def test_resolve_guid_accepts_local_id_or_guid() -> None:
    assert resolve_guid("media", "abc") == "media/abc"
    assert resolve_guid("media", "media/abc") == "media/abc"
    with pytest.raises(InvalidIdentifier):
        resolve_guid("media", "episode/abc")
