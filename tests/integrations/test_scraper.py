"""Tests for TrainerRoad HTML scraping."""

import pytest

from trainerroad_bridge.exceptions import ScrapeError
from trainerroad_bridge.integrations.scraper import (
    DEFAULT_LOGIN_ERROR,
    extract_career_username,
    extract_login_error,
    extract_token,
    make_token_extractor,
)

from conftest import LOGIN_PAGE_HTML, REJECTED_LOGIN_HTML


class TestExtractToken:
    """Tests for anti-forgery token extraction."""

    def test_extracts_token_from_login_page(self):
        assert extract_token(LOGIN_PAGE_HTML) == "tok-123-abc"

    def test_value_before_name(self):
        page = '<input type="hidden" value="reordered" name="__RequestVerificationToken">'

        assert extract_token(page) == "reordered"

    def test_missing_field_raises(self):
        with pytest.raises(ScrapeError) as exc_info:
            extract_token("<html><body>Welcome back!</body></html>")

        assert exc_info.value.status_code == 502

    def test_empty_value_raises(self):
        """An empty token is a failure, never a silent empty string."""
        with pytest.raises(ScrapeError):
            extract_token('<input name="__RequestVerificationToken" value="" />')

    def test_custom_field_name(self):
        extractor = make_token_extractor("csrf_token")

        assert extractor('<input name="csrf_token" value="c1" />') == "c1"


class TestExtractLoginError:
    """Tests for rejected-login message extraction."""

    def test_uses_validation_summary(self):
        assert extract_login_error(REJECTED_LOGIN_HTML) == "The user name or password provided is incorrect."

    def test_field_validation_error(self):
        page = '<span class="field-validation-error">Username is required</span>'

        assert extract_login_error(page) == "Username is required"

    def test_locked_keyword(self):
        assert extract_login_error("<p>Your account is locked</p>") == "Account is locked. Please try again later."

    def test_falls_back_to_generic_message(self):
        assert extract_login_error("<html></html>") == DEFAULT_LOGIN_ERROR
        assert extract_login_error("") == DEFAULT_LOGIN_ERROR


class TestExtractCareerUsername:
    """Tests for career handle discovery."""

    def test_from_final_url(self):
        assert extract_career_username("https://www.trainerroad.com/app/career/rider42") == "rider42"

    def test_from_url_with_query(self):
        assert extract_career_username("https://www.trainerroad.com/app/career/rider42?tab=rides") == "rider42"

    def test_from_page_fallback(self):
        page = '<a href="/app/career/rider42">Career</a>'

        assert extract_career_username("https://www.trainerroad.com/app/career", page) == "rider42"

    def test_not_found(self):
        assert extract_career_username("https://www.trainerroad.com/app/home", "<html></html>") is None
