"""
Unit tests for the anti-spam heuristics: honeypot classification, content
indicators and minimum dwell time.
"""

import pytest

from app.models.quote import SanitizedSubmission
from app.services.spam import (
    HONEYPOT_AUTOFILL,
    HONEYPOT_EMPTY,
    HONEYPOT_SPAM,
    classify_honeypot,
    count_links,
    detect_spam,
    is_submission_too_fast,
    parse_submission_time,
    submission_elapsed_ms,
)


def _submission(message: str) -> SanitizedSubmission:
    return SanitizedSubmission(
        pharmacy_name="Corner Pharmacy",
        contact_person="Jane Doe",
        phone="(313) 333-2133",
        email="jane@cornerpharmacy.com",
        message=message,
    )


# ---------------------------------------------------------------------------
# classify_honeypot
# ---------------------------------------------------------------------------

class TestClassifyHoneypot:

    def test_empty(self):
        assert classify_honeypot("") == HONEYPOT_EMPTY
        assert classify_honeypot("   ") == HONEYPOT_EMPTY
        assert classify_honeypot(None) == HONEYPOT_EMPTY

    def test_protocol_prefix_is_autofill(self):
        assert classify_honeypot("https://") == HONEYPOT_AUTOFILL

    def test_short_value_is_autofill(self):
        assert classify_honeypot("asdf") == HONEYPOT_AUTOFILL

    def test_nine_chars_is_autofill(self):
        assert classify_honeypot("abcdefghi") == HONEYPOT_AUTOFILL

    def test_ten_chars_without_allowlist_is_spam(self):
        assert classify_honeypot("abcdefghij") == HONEYPOT_SPAM

    def test_spam_phrase(self):
        assert classify_honeypot("buy-cheap-pills-now") == HONEYPOT_SPAM

    @pytest.mark.parametrize(
        "value",
        ["https://mypharmacy.org", "www.cornerpharmacy.com", "http://localhost:3000", "WWW.EXAMPLE.COM/page"],
    )
    def test_long_values_with_allowlisted_substring_are_autofill(self, value):
        assert classify_honeypot(value) == HONEYPOT_AUTOFILL

    def test_non_string_is_empty(self):
        assert classify_honeypot(12345678901) == HONEYPOT_EMPTY


# ---------------------------------------------------------------------------
# detect_spam
# ---------------------------------------------------------------------------

class TestDetectSpam:

    def test_clean_message(self):
        assert detect_spam(_submission("We deliver about 60 prescriptions a week.")) == []

    def test_empty_message(self):
        assert detect_spam(_submission("")) == []

    def test_two_links_allowed(self):
        message = "See https://a.example and http://b.example"
        assert detect_spam(_submission(message)) == []

    def test_three_links_flagged(self):
        message = "https://a.example http://b.example www.c.example"
        assert detect_spam(_submission(message)) == ["Too many links in message"]

    def test_bare_www_links_count(self):
        message = "Visit www.a-pharma.com, www.b-pharma.com or www.c-pharma.com"
        assert count_links(message) == 3
        assert detect_spam(_submission(message)) == ["Too many links in message"]

    @pytest.mark.parametrize("word", ["viagra", "CIALIS", "Casino", "lottery", "winner", "Congratulations"])
    def test_keywords_flagged(self, word):
        indicators = detect_spam(_submission(f"Great news: {word} for you"))
        assert indicators == ["Pharmaceutical or gambling spam keywords"]

    def test_keyword_inside_other_word_not_flagged(self):
        assert detect_spam(_submission("We are winners of a local award")) == []

    def test_prize_money(self):
        indicators = detect_spam(_submission("You have won $5 million dollars"))
        assert "Prize money language" in indicators

    def test_click_here(self):
        assert detect_spam(_submission("Please CLICK HERE to claim")) == ["Call-to-action link text"]

    def test_multiple_indicators(self):
        message = "Congratulations! Click here: http://a.x http://b.x http://c.x"
        assert len(detect_spam(_submission(message))) == 3

    def test_count_links(self):
        assert count_links("no links") == 0
        assert count_links("https://a.b www.c.d") == 2


# ---------------------------------------------------------------------------
# Dwell time
# ---------------------------------------------------------------------------

class TestDwellTime:

    NOW = 1_700_000_000_000

    def test_three_seconds_is_fine(self):
        assert is_submission_too_fast(self.NOW - 3000, 2000, now_ms=self.NOW) is False

    def test_half_second_is_too_fast(self):
        assert is_submission_too_fast(self.NOW - 500, 2000, now_ms=self.NOW) is True

    def test_exactly_the_minimum_is_fine(self):
        assert is_submission_too_fast(self.NOW - 2000, 2000, now_ms=self.NOW) is False

    def test_future_timestamp_is_too_fast(self):
        assert is_submission_too_fast(self.NOW + 10_000, 2000, now_ms=self.NOW) is True

    def test_missing_timestamp_skips_check(self):
        assert is_submission_too_fast(None, 2000, now_ms=self.NOW) is False
        assert is_submission_too_fast("", 2000, now_ms=self.NOW) is False

    def test_unparsable_timestamp_skips_check(self):
        assert is_submission_too_fast("yesterday", 2000, now_ms=self.NOW) is False

    def test_string_timestamp(self):
        assert submission_elapsed_ms(str(self.NOW - 4000), now_ms=self.NOW) == 4000

    def test_parse_submission_time(self):
        assert parse_submission_time(123.9) == 123
        assert parse_submission_time("1700000000000abc") == 1700000000000
        assert parse_submission_time(True) is None
        assert parse_submission_time({"t": 1}) is None
