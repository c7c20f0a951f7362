"""Unit tests for turning backend rows into display posts."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from linkup.feed.mapping import ANONYMOUS_HANDLE, UNKNOWN_NAME, author_ids, map_post, map_posts
from linkup.feed.models import Location


def _row(**overrides):
    row = {
        "id": "a1",
        "creator_id": "u1",
        "title": "Sunset run",
        "created_at": "2024-05-01T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def test_map_post_uses_profile_fields() -> None:
    post = map_post(
        _row(like_count=3, liked_by_viewer=True, tags=["#run", "#park"], lat=38.99, lng=-76.94, place_name="Campus"),
        {"id": "u1", "name": "Ada", "handle": "@ada", "avatar": "https://img/ada.png"},
    )

    assert post.id == "a1"
    assert post.author.display_name == "Ada"
    assert post.author.handle == "@ada"
    assert post.author.avatar_url == "https://img/ada.png"
    assert post.caption == "Sunset run"
    assert post.like_count == 3
    assert post.liked_by_current_user is True
    assert post.comment_count == 0
    assert post.tags == frozenset({"#run", "#park"})
    assert post.location == Location(lat=38.99, lng=-76.94)
    assert post.place_name == "Campus"
    assert post.created_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)


def test_map_post_without_profile_uses_placeholders() -> None:
    post = map_post(_row())

    assert post.author.id == "u1"
    assert post.author.display_name == UNKNOWN_NAME == "Unknown"
    assert post.author.handle == ANONYMOUS_HANDLE == "@anon"
    assert post.author.avatar_url is None
    assert post.tags == frozenset()
    assert post.image_url is None
    assert post.location is None
    assert post.like_count == 0
    assert post.liked_by_current_user is False


@pytest.mark.parametrize(
    "row",
    [
        {},
        None,
        "not a row",
        {"id": None, "title": None, "created_at": None},
        {"created_at": "yesterday", "like_count": "many", "tags": "#oops", "lat": "north", "lng": 1},
        {"participants": "u1", "max_people": "five", "location": {"lat": None}},
        {"like_count": -4, "max_people": 0, "lat": float("nan"), "lng": 2.0},
    ],
)
def test_map_post_never_raises_for_malformed_rows(row) -> None:
    post = map_post(row, {"name": None, "handle": ""})

    assert post.author.display_name == "Unknown"
    assert post.author.handle == "@anon"
    assert post.tags == frozenset()
    assert post.location is None
    assert post.like_count >= 0
    assert post.created_at.tzinfo is not None


def test_map_post_reads_participant_variant() -> None:
    post = map_post(_row(max_people=4, participants=["u2", "u3", "u2"]))

    assert post.max_participants == 4
    assert post.participants == ("u2", "u3")
    assert post.is_full is False


def test_map_post_counts_anonymous_joins_toward_capacity() -> None:
    post = map_post(_row(max_people=2, joined=2, participants=[]))

    assert post.joined_count == 2
    assert post.participants == ()
    assert post.slots_taken == 2
    assert post.is_full is True


@pytest.mark.parametrize("joined", [None, "many", -3, True])
def test_map_post_ignores_unusable_joined_counter(joined) -> None:
    post = map_post(_row(max_people=3, joined=joined, participants=["u2"]))

    assert post.joined_count == 0
    assert post.slots_taken == 1


def test_map_post_treats_zero_capacity_as_uncapped() -> None:
    assert map_post(_row(max_people=0)).max_participants is None


def test_map_posts_sorts_newest_first_and_joins_profiles() -> None:
    rows = [
        _row(id="t1", created_at="2024-01-01T00:00:00Z"),
        _row(id="t3", creator_id="u2", created_at="2024-03-01T00:00:00Z"),
        _row(id="t2", created_at="2024-02-01T00:00:00Z"),
    ]
    profiles = [{"id": "u1", "name": "Ada", "handle": "@ada"}]

    posts = map_posts(rows, profiles)

    assert [post.id for post in posts] == ["t3", "t2", "t1"]
    assert posts[0].author.display_name == "Unknown"
    assert posts[1].author.display_name == "Ada"


def test_map_posts_keeps_arrival_order_for_equal_timestamps() -> None:
    stamp = "2024-01-01T00:00:00Z"
    rows = [_row(id="first", created_at=stamp), _row(id="second", created_at=stamp)]

    assert [post.id for post in map_posts(rows)] == ["first", "second"]


def test_author_ids_are_distinct_in_first_seen_order() -> None:
    rows = [_row(creator_id="u2"), _row(creator_id="u1"), _row(creator_id="u2"), {"creator_id": None}, None]

    assert author_ids(rows) == ["u2", "u1"]
