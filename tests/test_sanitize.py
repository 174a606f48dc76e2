"""Tests for `relay.sanitize`."""

import pytest

from relay.sanitize import sanitize_content


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Hello <@123>", "Hello @user"),
        ("Hello <@!123>", "Hello @user"),
        ("Ping <@&42> now", "Ping @role now"),
        ("See <#987>", "See #channel"),
        ("<@1> <@&2> <#3>", "@user @role #channel"),
        ("no mentions here", "no mentions here"),
    ],
)
def test_mentions_are_replaced(raw: str, expected: str):
    assert sanitize_content(raw) == expected


def test_escaped_mention_is_unescaped_before_matching():
    assert sanitize_content(r"\u003c@123\u003e") == "@user"


def test_escaped_brackets_without_mention_become_plain_brackets():
    assert sanitize_content(r"a \u003cb\u003e c") == "a <b> c"


def test_other_markup_is_untouched():
    text = "**bold** <https://example.org> <:emoji:123> <@abc>"
    assert sanitize_content(text) == text


def test_none_and_whitespace_are_left_for_caller():
    assert sanitize_content(None) == ""
    assert sanitize_content("  <@1>  ") == "  @user  "
