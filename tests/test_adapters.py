"""Unit tests for the Adzuna adapter."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
import requests

from job_matcher.adapters import (
    AdapterConfigurationError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
    AdzunaAdapter,
    build_search_query,
)
from job_matcher.config.environment import EnvironmentConfig
from job_matcher.config.models import AdvancedConfig, AppConfig, JobSearchConfig


# ============================================================================
# Fixtures
# ============================================================================


def make_response(status_code=200, payload=None, json_error=None):
    response = Mock()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.text = ""
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    """Mock requests.Session with a real headers dict."""
    mock_session = Mock()
    mock_session.headers = {}
    return mock_session


@pytest.fixture
def adapter(session):
    return AdzunaAdapter(app_id="id-123", app_key="key-456", session=session)


@pytest.fixture
def adzuna_record():
    """One result record as returned by the Adzuna search API."""
    return {
        "id": "4123456789",
        "title": "Senior <strong>Python</strong> Developer",
        "description": "<p>Build APIs &amp; services.</p><p>Django experience.</p>",
        "company": {"display_name": "Example Ltd", "__CLASS__": "Adzuna::API::Response::Company"},
        "location": {"display_name": "London, UK", "area": ["UK", "London"]},
        "category": {"label": "IT Jobs", "tag": "it-jobs"},
        "created": "2025-11-04T08:15:00Z",
        "contract_type": "permanent",
        "salary_min": 50000,
        "salary_max": 65000.0,
        "salary_is_predicted": "0",
        "redirect_url": "https://www.adzuna.co.uk/jobs/land/ad/4123456789",
    }


# ============================================================================
# Query building
# ============================================================================


class TestQueryBuilding:
    """Tests for query and parameter construction."""

    def test_query_uses_title_and_first_three_skills(self, alert_factory):
        alert = alert_factory(job_title="Backend Engineer", skills=["Python", "Django", "SQL", "Redis"])

        assert build_search_query(alert) == "Backend Engineer Python Django SQL"

    def test_query_without_skills(self, alert_factory):
        alert = alert_factory(job_title="Designer", skills=[])

        assert build_search_query(alert) == "Designer"

    def test_params_defaults(self, adapter, alert_factory):
        alert = alert_factory(location=None, is_remote=False)

        params = adapter.build_params(alert)

        assert params["app_id"] == "id-123"
        assert params["app_key"] == "key-456"
        assert params["results_per_page"] == 20
        assert params["max_days_old"] == 1
        assert params["sort_by"] == "date"
        assert "where" not in params
        assert "remote" not in params

    def test_params_location_and_remote(self, adapter, alert_factory):
        alert = alert_factory(location="Manchester", is_remote=True)

        params = adapter.build_params(alert)

        assert params["where"] == "Manchester"
        assert params["remote"] == "true"

    def test_search_url(self, session):
        adapter = AdzunaAdapter(
            app_id="a",
            app_key="b",
            search_config=JobSearchConfig(base_url="https://api.example.test/jobs/", country="US"),
            session=session,
        )

        assert adapter.search_url == "https://api.example.test/jobs/us/search/1"


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    """Tests for adapter construction."""

    def test_missing_credentials(self, session):
        with pytest.raises(AdapterConfigurationError):
            AdzunaAdapter(app_id="", app_key="key", session=session)

    def test_invalid_timeout(self, session):
        with pytest.raises(AdapterConfigurationError):
            AdzunaAdapter(app_id="a", app_key="b", timeout=0, session=session)

    def test_user_agent_header(self, session):
        AdzunaAdapter(app_id="a", app_key="b", user_agent="Tester/2.0", session=session)

        assert session.headers["User-Agent"] == "Tester/2.0"

    def test_from_config(self):
        app_config = AppConfig(advanced=AdvancedConfig(http_request_timeout=25))
        env_config = EnvironmentConfig(
            adzuna_app_id="id", adzuna_app_key="key", telegram_bot_token="1:abc"
        )

        adapter = AdzunaAdapter.from_config(app_config, env_config)

        assert adapter.timeout == 25
        assert adapter.app_id == "id"
        adapter.close()


# ============================================================================
# Fetching
# ============================================================================


class TestFetch:
    """Tests for AdzunaAdapter.fetch."""

    def test_successful_fetch(self, adapter, session, alert_factory, adzuna_record):
        session.request.return_value = make_response(payload={"results": [adzuna_record]})

        [posting] = adapter.fetch(alert_factory())

        assert posting.external_id == "4123456789"
        assert posting.title == "Senior Python Developer"
        assert posting.company == "Example Ltd"
        assert posting.location == "London, UK"
        assert posting.category == "IT Jobs"
        assert posting.contract_type == "permanent"
        assert "<p>" not in posting.description
        assert "Build APIs & services." in posting.description
        assert posting.url == "https://www.adzuna.co.uk/jobs/land/ad/4123456789"
        assert posting.posted_at == datetime(2025, 11, 4, 8, 15, tzinfo=timezone.utc)
        assert posting.salary.minimum == 50000
        assert posting.salary.maximum == 65000
        assert posting.salary.is_predicted is False

    def test_single_get_with_params(self, adapter, session, alert_factory):
        session.request.return_value = make_response(payload={"results": []})

        adapter.fetch(alert_factory())

        session.request.assert_called_once()
        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "https://api.adzuna.com/v1/api/jobs/gb/search/1"
        assert kwargs["params"]["what"] == "python developer Python Django"
        assert kwargs["timeout"] == 10

    def test_free_text_search(self, adapter, session, adzuna_record):
        session.request.return_value = make_response(payload={"results": [adzuna_record]})

        [posting] = adapter.search("Python OR SQL", location="York")

        params = session.request.call_args.kwargs["params"]
        assert params["what"] == "Python OR SQL"
        assert params["where"] == "York"
        assert "remote" not in params
        assert posting.external_id == "4123456789"

    def test_free_text_search_fails_open(self, adapter, session):
        session.request.return_value = make_response(status_code=500)

        assert adapter.search("Python") == []

    def test_string_fields_and_area_fallback(self, adapter, session, alert_factory):
        record = {
            "id": 7,
            "title": "Analyst",
            "company": "Plain Co",
            "location": {"area": ["UK", "North West", "Manchester"]},
            "category": None,
        }
        session.request.return_value = make_response(payload={"results": [record]})

        [posting] = adapter.fetch(alert_factory())

        assert posting.external_id == "7"
        assert posting.company == "Plain Co"
        assert posting.location == "UK, North West, Manchester"
        assert posting.category == ""
        assert posting.description == ""

    def test_missing_redirect_url_uses_details_url(self, adapter, session, alert_factory):
        session.request.return_value = make_response(payload={"results": [{"id": "99", "title": "Dev"}]})

        [posting] = adapter.fetch(alert_factory())

        assert posting.url == "https://www.adzuna.co.uk/jobs/details/99"

    def test_salary_absent_is_none(self, adapter, session, alert_factory):
        session.request.return_value = make_response(payload={"results": [{"id": "1"}]})

        [posting] = adapter.fetch(alert_factory())

        assert posting.salary is None
        assert posting.posted_at is None

    def test_salary_keys_without_values(self, adapter, session, alert_factory):
        record = {"id": "1", "salary_min": None, "salary_max": 0}
        session.request.return_value = make_response(payload={"results": [record]})

        [posting] = adapter.fetch(alert_factory())

        assert posting.salary is not None
        assert posting.salary.minimum is None
        assert posting.salary.maximum is None

    @pytest.mark.parametrize("status_code", [400, 401, 404, 500, 503])
    def test_http_errors_return_empty(self, adapter, session, alert_factory, status_code):
        session.request.return_value = make_response(status_code=status_code)

        assert adapter.fetch(alert_factory()) == []

    def test_timeout_returns_empty(self, adapter, session, alert_factory):
        session.request.side_effect = requests.exceptions.Timeout("slow")

        assert adapter.fetch(alert_factory()) == []

    def test_connection_error_returns_empty(self, adapter, session, alert_factory):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        assert adapter.fetch(alert_factory()) == []

    def test_invalid_json_returns_empty(self, adapter, session, alert_factory):
        session.request.return_value = make_response(json_error=ValueError("not json"))

        assert adapter.fetch(alert_factory()) == []

    def test_unexpected_shape_returns_empty(self, adapter, session, alert_factory):
        session.request.return_value = make_response(payload={"results": {"not": "a list"}})

        assert adapter.fetch(alert_factory()) == []

    def test_non_dict_records_skipped(self, adapter, session, alert_factory):
        session.request.return_value = make_response(payload={"results": ["junk", {"id": "1"}]})

        postings = adapter.fetch(alert_factory())

        assert [p.external_id for p in postings] == ["1"]


class TestMakeRequest:
    """Tests for typed errors raised by BaseAdapter._make_request."""

    def test_http_error(self, adapter, session):
        session.request.return_value = make_response(status_code=502)

        with pytest.raises(AdapterHTTPError) as exc_info:
            adapter._make_request("https://api.example.test")

        assert exc_info.value.status_code == 502

    def test_transport_error_has_status_zero(self, adapter, session):
        session.request.side_effect = requests.exceptions.ConnectionError()

        with pytest.raises(AdapterHTTPError) as exc_info:
            adapter._make_request("https://api.example.test")

        assert exc_info.value.status_code == 0

    def test_timeout(self, adapter, session):
        session.request.side_effect = requests.exceptions.Timeout()

        with pytest.raises(AdapterTimeoutError):
            adapter._make_request("https://api.example.test")

    def test_invalid_json(self, adapter, session):
        session.request.return_value = make_response(json_error=ValueError("bad"))

        with pytest.raises(AdapterResponseError):
            adapter._make_request("https://api.example.test")
