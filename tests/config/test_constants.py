"""Tests for the default boilerplate exclusion patterns."""

import re

import pytest

from covpipe.config.constants import (
    DEFAULT_EXCLUDE_PATTERNS,
    EXCLUDE_ASSERT,
    EXCLUDE_AWAIT,
    EXCLUDE_DERIVE,
    EXCLUDE_UNWRAP,
)


@pytest.mark.parametrize(
    ("pattern", "line"),
    [
        (EXCLUDE_ASSERT, "    assert!(x);"),
        (EXCLUDE_ASSERT, "assert_eq!(a, b);"),
        (EXCLUDE_ASSERT, "  debug_assert_ne!(a, b);"),
        (EXCLUDE_DERIVE, "#[derive(Debug, Clone)]"),
        (EXCLUDE_UNWRAP, "        .unwrap()"),
        (EXCLUDE_AWAIT, "    .await?;"),
    ],
)
def test_pattern_matches_boilerplate(pattern: str, line: str) -> None:
    assert re.search(pattern, line)


@pytest.mark.parametrize(
    "line",
    [
        "let x = foo.unwrap();",
        "fn assert_valid() {}",
        "let y = fut.await;",
        "// #[derive(Debug)]",
    ],
)
def test_ordinary_code_not_excluded(line: str) -> None:
    assert not any(re.search(p, line) for p in DEFAULT_EXCLUDE_PATTERNS)
