from __future__ import annotations

from dataclasses import replace

import pytest

from lyricsweep.core.signature import compute_signature
from tests.helpers import make_track


def test_signature_is_stable_hex_digest() -> None:
    track = make_track(1)

    first = compute_signature(track)
    second = compute_signature(make_track(1))

    assert first == second
    assert len(first) == 64
    int(first, 16)


def test_signature_ignores_case_and_surrounding_whitespace() -> None:
    base = make_track(1, name="Song", album="Album", artists=("Artist", "Guest"))
    noisy = make_track(
        1,
        name="  SONG ",
        album="album  ",
        artists=(" artist", "GUEST ", "   "),
    )

    assert compute_signature(base) == compute_signature(noisy)


@pytest.mark.parametrize(
    "field_name, value",
    [
        ("name", "Other Song"),
        ("path", "/music/moved.flac"),
        ("duration_seconds", 999.0),
        ("album", "Deluxe"),
        ("artists", ("Someone Else",)),
        ("album_artists", ("Various Artists",)),
    ],
)
def test_signature_changes_when_any_descriptive_field_changes(field_name: str, value: object) -> None:
    track = make_track(3)
    changed = replace(track, **{field_name: value})

    assert compute_signature(track) != compute_signature(changed)


def test_signature_keeps_slots_unambiguous() -> None:
    left = make_track(1, artists=("A", "B"), album_artists=())
    right = make_track(1, artists=("A",), album_artists=("B",))

    assert compute_signature(left) != compute_signature(right)


def test_missing_optional_fields_use_sentinels() -> None:
    without = make_track(1, duration_seconds=None, album=None, artists=(), album_artists=())
    empty_album = make_track(1, duration_seconds=None, album="", artists=(), album_artists=())

    assert compute_signature(without) == compute_signature(without)
    assert compute_signature(without) != compute_signature(empty_album)
