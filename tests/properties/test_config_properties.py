# pyright: reportAny=false, reportExplicitAny=false
from typing import Any

from hypothesis import given, strategies as st

from nebula_desktop.config import deep_merge, parse_string_value

keys = st.text(alphabet="abcdefghij_", min_size=1, max_size=6)
scalars = st.one_of(st.booleans(), st.integers(), st.text(max_size=10))
config_dicts = st.recursive(
    st.dictionaries(keys, scalars, max_size=4),
    lambda children: st.dictionaries(
        keys, st.one_of(scalars, children, st.lists(scalars, max_size=3)), max_size=4
    ),
    max_leaves=12,
)


@given(config=config_dicts)
def test_merge_with_empty_is_identity(config: dict[str, Any]) -> None:
    assert deep_merge(config, {}) == config
    assert deep_merge({}, config) == config


@given(config=config_dicts)
def test_merge_is_idempotent(config: dict[str, Any]) -> None:
    assert deep_merge(config, config) == config


@given(base=config_dicts, override=config_dicts)
def test_override_scalars_win(base: dict[str, Any], override: dict[str, Any]) -> None:
    merged = deep_merge(base, override)

    assert merged.keys() == base.keys() | override.keys()
    for key, value in override.items():
        if not isinstance(value, dict):
            assert merged[key] == value


@given(value=st.integers())
def test_integers_parse_back(value: int) -> None:
    assert parse_string_value(str(value)) == value


@given(value=st.booleans())
def test_booleans_parse_back(value: bool) -> None:
    assert parse_string_value(str(value)) is value


@given(value=st.text(alphabet="abcdfghijklmnopqrstuvwxyz/", min_size=1, max_size=20))
def test_plain_words_stay_strings(value: str) -> None:
    # Without "e" neither boolean literal can be spelled
    assert parse_string_value(value) == value
