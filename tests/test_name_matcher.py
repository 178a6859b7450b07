from __future__ import annotations

from pydantic_models.data.directory_user import DirectoryUser
from schedule_imports.name_matcher import NameMatcher, name_distance


def _user(user_id: int, name) -> DirectoryUser:
    return DirectoryUser(id=user_id, name=name, email=f"user{user_id}@example.com", role="OPERATOR")


USERS = [
    _user(1, "Maria Ionescu"),
    _user(2, "popescu ion"),
    _user(3, "Andrei Vasile"),
]


def test_token_order_and_case_do_not_matter() -> None:
    # token_sort_ratio: beide Namen werden zu "ion popescu" normalisiert
    assert name_distance("Ion Popescu", "popescu ion") == 0.0
    assert NameMatcher().match("Ion Popescu", USERS).id == 2


def test_small_typo_still_matches() -> None:
    assert NameMatcher().match("Andrei Vasil", USERS).id == 3


def test_different_person_is_not_matched() -> None:
    assert NameMatcher().match("Elena Dumitrescu", USERS) is None


def test_distance_must_be_strictly_below_threshold() -> None:
    distance = name_distance("Ion Popescu", "Ion Popa")
    assert NameMatcher(threshold=distance).match("Ion Popescu", [_user(9, "Ion Popa")]) is None
    assert NameMatcher(threshold=distance + 0.01).match("Ion Popescu", [_user(9, "Ion Popa")]).id == 9


def test_candidates_without_name_are_skipped() -> None:
    users = [_user(1, None), _user(2, "  "), _user(3, "Ion Popescu")]
    assert NameMatcher().match("Ion Popescu", users).id == 3


def test_empty_candidates_or_name() -> None:
    assert NameMatcher().match("Ion Popescu", []) is None
    assert NameMatcher().match("   ", USERS) is None


def test_tie_break_prefers_lowest_id() -> None:
    users = [_user(7, "Ion Popescu"), _user(4, "Popescu Ion")]
    assert NameMatcher().match("ion popescu", users).id == 4
    assert NameMatcher().match("ion popescu", list(reversed(users))).id == 4


def test_match_is_idempotent() -> None:
    matcher = NameMatcher()
    first = matcher.match("Maria Ionescu", USERS)
    second = matcher.match("Maria Ionescu", USERS)
    assert first == second
