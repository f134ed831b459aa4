"""Tests for the command line interface."""

from datetime import UTC, datetime, timedelta

import pytest
import yaml
from sqlmodel import Session
from typer.testing import CliRunner

from rating_engine import __version__
from rating_engine.cli import app
from rating_engine.models import ReviewRecord, SkillRecord, UserRecord
from rating_engine.services.storage import create_db_engine

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Config pointing at a seeded SQLite file."""
    database_url = f"sqlite:///{tmp_path / 'ratings.db'}"
    now = datetime.now(UTC)

    engine = create_db_engine(database_url)
    with Session(engine) as session:
        for user_id in (1, 2, 3):
            session.add(UserRecord(id=user_id, name=f"user-{user_id}", updated_at=now))
        for review_id, (reviewee_id, rating) in enumerate(
            [(1, 5), (1, 5), (1, 4), (2, 3), (2, 3), (2, 4)], start=1
        ):
            session.add(
                ReviewRecord(
                    id=review_id,
                    reviewer_id=3,
                    reviewee_id=reviewee_id,
                    rating=rating,
                    created_at=now - timedelta(days=review_id),
                )
            )
        session.add(SkillRecord(user_id=2, category_id=7))
        session.commit()
    engine.dispose()

    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({"database_url": database_url}))
    return path


class TestVersionAndInfo:
    """Tests for informational commands."""

    def test_version(self):
        """Test --version prints the version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_info(self):
        """Test info lists example commands."""
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "rating-engine refresh" in result.output


class TestValidate:
    """Tests for config validation."""

    def test_valid(self, config_file):
        """Test a valid config is reported."""
        result = runner.invoke(app, ["validate", str(config_file)])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_missing_file(self, tmp_path):
        """Test a missing file exits with status 1."""
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1

    def test_duckdb_without_path(self, tmp_path):
        """Test configuration errors exit with status 1."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"cache": {"backend": "duckdb"}}))
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "cache.path" in result.output


class TestRefresh:
    """Tests for the refresh command."""

    def test_refresh_all(self, config_file):
        """Test every stale user is refreshed, then nothing is pending."""
        result = runner.invoke(app, ["refresh", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "Processed: 3" in result.output

        result = runner.invoke(app, ["refresh", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "fresh" in result.output

    def test_refresh_single_user(self, config_file):
        """Test single refresh, fresh skip and forced refresh."""
        args = ["refresh", "--user-id", "1", "--config", str(config_file)]

        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert "Refreshed user 1" in result.output

        result = runner.invoke(app, args)
        assert "--force" in result.output

        result = runner.invoke(app, [*args, "--force", "--with-history"])
        assert "Refreshed user 1" in result.output

    def test_refresh_unknown_user(self, config_file):
        """Test refreshing a missing user exits with status 1."""
        result = runner.invoke(app, ["refresh", "--user-id", "404", "--config", str(config_file)])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestReports:
    """Tests for stats, rank, leaderboard and history."""

    def test_stats(self, config_file):
        """Test stats table for a user."""
        result = runner.invoke(app, ["stats", "1", "--no-cache", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "Weighted Average" in result.output
        assert "Quality Score" in result.output

    def test_stats_unknown_user(self, config_file):
        """Test stats for a missing user exits with status 1."""
        result = runner.invoke(app, ["stats", "404", "--config", str(config_file)])
        assert result.exit_code == 1

    def test_rank(self, config_file):
        """Test ranking among the two qualified users."""
        result = runner.invoke(app, ["rank", "1", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "1 of 2" in result.output

    def test_rank_in_category(self, config_file):
        """Test category ranking only includes skilled users."""
        result = runner.invoke(app, ["rank", "1", "--category", "7", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "unranked" in result.output

    def test_leaderboard(self, config_file):
        """Test leaderboard lists refreshed users best first."""
        runner.invoke(app, ["refresh", "--config", str(config_file)])

        result = runner.invoke(app, ["leaderboard", "--config", str(config_file)])

        assert result.exit_code == 0
        assert result.output.index("user-1") < result.output.index("user-2")
        assert "user-3" not in result.output

    def test_empty_leaderboard(self, config_file):
        """Test leaderboard before any refresh."""
        result = runner.invoke(app, ["leaderboard", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "No rating-eligible users yet." in result.output

    def test_history(self, config_file):
        """Test history lists recorded snapshots."""
        runner.invoke(
            app, ["refresh", "--user-id", "1", "--with-history", "--config", str(config_file)]
        )

        result = runner.invoke(app, ["history", "1", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "scheduled" in result.output
        assert "trend: stable" in result.output

    def test_trends(self, config_file):
        """Test platform trends over recorded history."""
        runner.invoke(app, ["refresh", "--with-history", "--config", str(config_file)])

        result = runner.invoke(app, ["trends", "--period", "week", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Rating Trends (week, all users)" in result.output
        assert "3 updates" in result.output
        assert "Daily Breakdown" in result.output

    def test_trends_in_category(self, config_file):
        """Test category trends only count skilled users."""
        runner.invoke(app, ["refresh", "--with-history", "--config", str(config_file)])

        result = runner.invoke(app, ["trends", "--category", "7", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "category 7" in result.output
        assert "1 updates" in result.output

    def test_trends_rejects_unknown_period(self, config_file):
        """Test only week, month, quarter and year are accepted."""
        result = runner.invoke(app, ["trends", "--period", "decade", "--config", str(config_file)])
        assert result.exit_code != 0
