import pytest

from src.validators.security import (
    is_sql_injection_attempt,
    is_xss_attempt,
    remove_special_characters,
    sanitize_html,
    sanitize_input,
)


@pytest.mark.parametrize(
    "text",
    [
        "Robert'); DROP TABLE applicants;--",
        "1 UNION SELECT password FROM users",
        "name; exec xp_cmdshell",
        'say "hi"',
        "back\\slash",
    ],
)
def test_sql_injection_detected(text):
    assert is_sql_injection_attempt(text) is True


@pytest.mark.parametrize("text", [None, "", "   ", "Alice", "Selection Committee", "Dropbox"])
def test_sql_injection_not_flagged(text):
    # Keywords only match as whole words.
    assert is_sql_injection_attempt(text) is False


def test_sql_allowed_chars_exempt_only_the_given_characters():
    assert is_sql_injection_attempt("Smith-Jones") is True
    assert is_sql_injection_attempt("Smith-Jones", allowed_chars="-'") is False
    assert is_sql_injection_attempt("O'Brien", allowed_chars="-'") is False
    assert is_sql_injection_attempt("O'Brien;", allowed_chars="-'") is True
    # Keywords are never exempt.
    assert is_sql_injection_attempt("Drop-Table", allowed_chars="-'") is True


@pytest.mark.parametrize(
    "text",
    [
        "<script>alert(1)</script>",
        "<SCRIPT SRC=x>",
        "<img src=x onerror=alert(1)>",
        '<div onclick = "steal()">',
        "javascript:alert(1)",
        "data:text/html;base64,PHNjcmlwdD4=",
        "VBScript:msgbox",
        "<iframe src=evil>",
        "<svg/onload=alert(1)>",
    ],
)
def test_xss_detected(text):
    assert is_xss_attempt(text) is True


@pytest.mark.parametrize("text", [None, "", "  ", "a < b and c > d", "Formula One", "<b>bold</b>"])
def test_xss_not_flagged(text):
    assert is_xss_attempt(text) is False


def test_sanitize_input_encodes_markup_and_collapses_whitespace():
    assert sanitize_input('  <b>"Tom" & \'Jerry\'</b>\x00  ') == (
        "&lt;b&gt;&quot;Tom&quot; &amp; &#x27;Jerry&#x27;&lt;/b&gt;"
    )
    assert sanitize_input("a \t\n  b") == "a b"
    assert sanitize_input(None) is None


@pytest.mark.parametrize(
    "text",
    ["<script>alert(1)</script>", "Tom & Jerry", "O'Brien", "already &amp; encoded", "  spaced   out  ", "\x1ax"],
)
def test_sanitize_input_is_idempotent(text):
    once = sanitize_input(text)
    assert sanitize_input(once) == once


def test_sanitize_html_strips_tags_then_encodes():
    assert sanitize_html("<p>Hello <b>world</b></p>") == "Hello world"
    assert sanitize_html("<i>x</i> & y") == "x &amp; y"
    assert sanitize_html(None) is None


def test_remove_special_characters():
    assert remove_special_characters("Hi, there! #1") == "Hi there 1"
    assert remove_special_characters("Hi, there! #1", allow_spaces=False) == "Hithere1"
    assert remove_special_characters("") == ""
