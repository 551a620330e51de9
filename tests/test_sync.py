"""Tests for lincli.sync module."""

import pytest

from lincli.config.manager import CachedTeam, Config
from lincli.integrations.queries import (
    PROJECTS_QUERY,
    TEAM_BY_KEY_QUERY,
    TEAMS_QUERY,
    WORKFLOW_STATES_QUERY,
)
from lincli.sync import SyncEngine, parse_estimate_scale
from lincli.utils.errors import ApiError, ConfigError, NotFoundError


class TestParseEstimateScale:
    """Tests for estimation-type to label mapping."""

    def test_tshirt(self):
        assert parse_estimate_scale("tShirt") == {
            "xs": 1.0,
            "s": 2.0,
            "m": 3.0,
            "l": 5.0,
            "xl": 8.0,
        }

    def test_fibonacci(self):
        assert list(parse_estimate_scale("fibonacci").values()) == [1, 2, 3, 5, 8, 13, 21]

    def test_exponential_and_linear(self):
        assert max(parse_estimate_scale("exponential").values()) == 64
        assert parse_estimate_scale("linear")["5"] == 5.0

    @pytest.mark.parametrize("estimate_type", [None, "notUsed", "bogus"])
    def test_unused_or_unknown(self, estimate_type):
        assert parse_estimate_scale(estimate_type) == {}

    def test_returns_copy(self):
        scale = parse_estimate_scale("tShirt")
        scale["xxl"] = 13.0

        assert "xxl" not in parse_estimate_scale("tShirt")


class TestSyncTeam:
    """Tests for SyncEngine.sync_team."""

    def test_fetches_team_and_states(self, fake_api):
        team = SyncEngine(fake_api).sync_team("eng")

        assert team.id == "t-1"
        assert team.name == "Engineering"
        assert team.states == {"todo": "s-1", "done": "s-2"}
        assert team.estimates == {}

    def test_key_upper_cased_in_query(self, fake_api):
        SyncEngine(fake_api).sync_team("eng")

        query, variables = fake_api.calls[0]
        assert query == TEAM_BY_KEY_QUERY
        assert variables == {"filter": {"key": {"eq": "ENG"}}}

    def test_unknown_team(self, fake_api):
        with pytest.raises(NotFoundError, match="Team 'OPS' not found"):
            SyncEngine(fake_api).sync_team("OPS")

    def test_api_error_propagates(self, fake_api):
        fake_api.fail_on.add(WORKFLOW_STATES_QUERY)

        with pytest.raises(ApiError, match="HTTP 500"):
            SyncEngine(fake_api).sync_team("ENG")

    def test_bad_response_shape(self, fake_api):
        fake_api.query = lambda query, variables=None: {"teams": None}

        with pytest.raises(ApiError, match="Unexpected response shape"):
            SyncEngine(fake_api).fetch_team_by_key("ENG")


class TestSyncAll:
    """Tests for SyncEngine.sync_all."""

    def test_syncs_every_team(self, fake_api, empty_config, config_file):
        results = SyncEngine(fake_api).sync_all(empty_config)

        assert results == [("ENG", 2), ("DES", 2)]
        assert fake_api.calls[0] == (TEAMS_QUERY, {"first": 100})

        saved = Config.load(config_file)
        assert saved.get_team_id("DES") == "t-2"
        assert saved.get_state_id("DES", "in progress") == "s-4"
        assert saved.get_active_org().cache.last_sync is not None

    def test_estimate_scales_applied(self, fake_api, empty_config):
        SyncEngine(fake_api).sync_all(empty_config)

        assert empty_config.get_estimate_value("ENG", "XL") == 8.0
        assert empty_config.get_estimate_value("DES", "13") == 13.0

    def test_manual_estimates_survive_resync(self, fake_api, cached_config, config_file):
        SyncEngine(fake_api).sync_all(cached_config)

        saved = Config.load(config_file)
        assert saved.get_all_estimates_for_team("ENG") == ["S", "M", "L"]
        assert saved.get_estimate_value("ENG", "M") == 2.0
        assert saved.get_estimate_value("ENG", "XL") is None
        assert saved.get_estimate_value("DES", "21") == 21.0

    def test_empty_estimates_filled_from_scale(self, fake_api, empty_config):
        empty_config.cache_team("ENG", CachedTeam(id="t-1", name="Engineering"))

        SyncEngine(fake_api).sync_all(empty_config)

        assert empty_config.get_estimate_value("ENG", "xs") == 1.0

    def test_projects_cached(self, fake_api, empty_config, config_file):
        SyncEngine(fake_api).sync_all(empty_config)

        saved = Config.load(config_file)
        assert saved.get_project_id("q1-backend") == "p-1"
        assert saved.get_project_id("Mobile App") == "p-2"
        assert fake_api.count(PROJECTS_QUERY) == 1

    def test_requires_active_org(self, fake_api):
        with pytest.raises(ConfigError):
            SyncEngine(fake_api).sync_all(Config())

        assert fake_api.calls == []

    def test_first_failure_aborts_but_keeps_earlier_teams(
        self, fake_api, empty_config, config_file
    ):
        real_query = fake_api.query

        def failing_query(query, variables=None):
            if query == WORKFLOW_STATES_QUERY and variables["id"] == "t-2":
                raise ApiError("HTTP 502 from Linear API")
            return real_query(query, variables)

        fake_api.query = failing_query

        with pytest.raises(ApiError, match="502"):
            SyncEngine(fake_api).sync_all(empty_config)

        saved = Config.load(config_file)
        assert saved.get_team_id("ENG") == "t-1"
        assert saved.get_team_id("DES") is None
        assert saved.get_active_org().cache.last_sync is None


class TestSyncProjects:
    """Tests for SyncEngine.sync_projects."""

    def test_caches_slugs(self, fake_api, empty_config):
        assert SyncEngine(fake_api).sync_projects(empty_config) == 2

        assert empty_config.get_all_project_slugs() == ["mobile-app", "q1-backend"]
        assert fake_api.calls == [(PROJECTS_QUERY, {"first": 250})]

    def test_requires_active_org(self, fake_api):
        with pytest.raises(ConfigError):
            SyncEngine(fake_api).sync_projects(Config())

        assert fake_api.calls == []
