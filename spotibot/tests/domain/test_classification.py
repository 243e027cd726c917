import pytest

from spotibot.domain.classification import classify_url, normalize_kind, path_segments
from spotibot.domain.entities import RESOURCE_KINDS, ResolvedEntity


@pytest.mark.parametrize("kind", RESOURCE_KINDS)
def test_every_resource_kind_is_recognized(kind):
    entity = classify_url(f"https://open.spotify.com/{kind}/id42")

    assert entity == ResolvedEntity(kind=kind, id="id42")


def test_query_string_is_not_part_of_the_id():
    entity = classify_url("https://open.spotify.com/track/abc123?si=deadbeef")

    assert entity == ResolvedEntity(kind="track", id="abc123")


def test_legacy_user_playlist_path_matches_modern_path():
    legacy = classify_url("https://open.spotify.com/user/someone/playlist/37i9dQZF1DX")
    modern = classify_url("https://open.spotify.com/playlist/37i9dQZF1DX")

    assert legacy == modern == ResolvedEntity(kind="playlist", id="37i9dQZF1DX")


def test_locale_prefix_is_dropped_when_three_segments_present():
    prefixed = classify_url("https://open.spotify.com/intl-de/album/xyz789")
    plain = classify_url("https://open.spotify.com/album/xyz789")

    assert prefixed == plain == ResolvedEntity(kind="album", id="xyz789")


def test_locale_prefix_with_two_segments_does_not_match():
    assert classify_url("https://open.spotify.com/intl-de/album") is None


def test_embed_marker_is_dropped():
    assert classify_url("https://open.spotify.com/embed/episode/ep1") == ResolvedEntity(kind="episode", id="ep1")
    assert classify_url("https://open.spotify.com/intl-fr/embed/show/s1") == ResolvedEntity(kind="show", id="s1")


def test_embed_marker_without_id_does_not_match():
    assert classify_url("https://open.spotify.com/embed/track") is None


def test_empty_and_padded_segments_are_ignored():
    assert classify_url("https://open.spotify.com//artist///a1/") == ResolvedEntity(kind="artist", id="a1")


@pytest.mark.parametrize("url", [
    "https://open.spotify.com/",
    "https://open.spotify.com/track",
    "https://open.spotify.com/genre/pop",
    "https://open.spotify.com/Track/abc",
    "https://open.spotify.com/tracks/abc",
    "https://open.spotify.com/user/someone",
    "https://open.spotify.com/user/someone/playlist",
    "https://spotify.link/abcd",
    "https://example.com/track/abc",
    "not a url",
])
def test_unrecognized_urls_yield_none(url):
    assert classify_url(url) is None


def test_user_path_without_playlist_is_not_a_resource():
    assert classify_url("https://open.spotify.com/user/someone/collection/x") is None


def test_helpers():
    assert path_segments("/a/ b //c/") == ["a", "b", "c"]
    assert normalize_kind("album") == "album"
    assert normalize_kind("albums") is None
