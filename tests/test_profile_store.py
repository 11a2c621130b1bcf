"""Tests for the profile store."""

import pytest

from burn_tracker.domain.profile import DEFAULT_PROFILE, Gender, Profile
from burn_tracker.services.profile import ProfileStore
from burn_tracker.services.storage import PROFILE_AGE_KEY, PROFILE_WEIGHT_KEY
from tests.conftest import InMemoryKeyValueStore


def test_load_returns_defaults_when_empty() -> None:
    store = ProfileStore(InMemoryKeyValueStore())

    assert store.load() == DEFAULT_PROFILE
    assert store.load() == Profile(Gender.MALE, 25, 70.0, 2000)


def test_load_fills_missing_and_bad_fields_with_defaults() -> None:
    kv = InMemoryKeyValueStore(values={PROFILE_AGE_KEY: "41", PROFILE_WEIGHT_KEY: "x"})

    profile = ProfileStore(kv).load()

    assert profile.age_years == 41
    assert profile.weight_kg == 70.0
    assert profile.daily_goal_calories == 2000


def test_save_persists_and_is_visible_immediately() -> None:
    store = ProfileStore(InMemoryKeyValueStore())
    candidate = Profile(Gender.FEMALE, 33, 58.5, 1800)

    error = store.save(candidate)

    assert error is None
    assert store.load() == candidate


def test_invalid_save_leaves_previous_profile_untouched() -> None:
    kv = InMemoryKeyValueStore()
    store = ProfileStore(kv)
    saved = Profile(Gender.FEMALE, 33, 58.5, 1800)
    store.save(saved)
    writes_before = kv.writes

    error = store.save(Profile(Gender.MALE, 200, 80.0, 2500))

    assert error is not None
    assert set(error.errors) == {"age_years"}
    assert store.load() == saved
    assert kv.writes == writes_before


def test_save_reports_every_invalid_field() -> None:
    store = ProfileStore(InMemoryKeyValueStore())

    error = store.save(Profile(Gender.MALE, 0, 20.0, 400))

    assert error is not None
    assert set(error.errors) == {"age_years", "weight_kg", "daily_goal_calories"}
    assert store.load() == DEFAULT_PROFILE


def test_boundary_values_are_accepted() -> None:
    store = ProfileStore(InMemoryKeyValueStore())

    assert store.save(Profile(Gender.MALE, 1, 30.0, 500)) is None
    assert store.save(Profile(Gender.MALE, 120, 30.0, 10000)) is None


@pytest.mark.parametrize("weight", [float("nan"), float("inf"), float("-inf")])
def test_save_rejects_non_finite_weight(weight: float) -> None:
    kv = InMemoryKeyValueStore()
    store = ProfileStore(kv)

    error = store.save(Profile(Gender.MALE, 30, weight, 2000))

    assert error is not None
    assert set(error.errors) == {"weight_kg"}
    assert kv.writes == 0


def test_save_rejects_non_integer_age_and_goal() -> None:
    store = ProfileStore(InMemoryKeyValueStore())

    candidate = Profile(Gender.MALE, 30.5, 70.0, 1999.9)  # type: ignore[arg-type]

    error = store.save(candidate)

    assert error is not None
    assert set(error.errors) == {"age_years", "daily_goal_calories"}


@pytest.mark.parametrize("raw", ["nan", "inf", "-inf"])
def test_load_ignores_non_finite_stored_weight(raw: str) -> None:
    kv = InMemoryKeyValueStore(values={PROFILE_WEIGHT_KEY: raw})

    assert ProfileStore(kv).load().weight_kg == 70.0
