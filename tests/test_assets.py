"""Tests for the asset registry and value history."""

import pytest

from spendora.db import UNSET, AssetUpdate, ConstraintViolationError, NotFoundError
from spendora.models import AssetCategory, AssetType


class TestAssetModel:
    """Tests for Asset parsing and derived values."""

    @pytest.mark.parametrize(
        "asset_type,category",
        [
            ("stocks", AssetCategory.MARKET),
            ("etf", AssetCategory.MARKET),
            ("gold_digital", AssetCategory.GOLD),
            ("land", AssetCategory.PROPERTY),
            ("ppf", AssetCategory.FIXED_INCOME),
            ("crypto", AssetCategory.ALTERNATIVE),
            ("cash", AssetCategory.CASH),
            ("other", AssetCategory.OTHER),
        ],
    )
    def test_category_grouping(self, make_asset, asset_type, category):
        """Test the fixed type to category mapping."""
        assert make_asset(type=asset_type).category == category

    def test_every_type_has_a_category(self):
        """Test that no asset type is left ungrouped."""
        assert len(AssetType) == 18
        for asset_type in AssetType:
            assert isinstance(asset_type.category, AssetCategory)

    def test_gain(self, make_asset):
        """Test gain and gain percent."""
        asset = make_asset(investedAmount=8000, currentValue=10000)
        assert asset.gain == 2000
        assert asset.gain_percent == pytest.approx(25.0)

    def test_invalid_type_rejected(self, make_asset):
        """Test the asset type allowed set."""
        with pytest.raises(ConstraintViolationError):
            make_asset(type="nft")


class TestAssetRepository:
    """Tests for AssetRepository."""

    def test_add_writes_first_history_row(self, repo, make_asset):
        """Test that a new asset has exactly one valuation."""
        repo.assets.add(make_asset(id="a1", currentValue=10000))
        history = repo.assets.list_value_history("a1")
        assert len(history) == 1
        assert history[0].value == 10000
        assert history[0].date == "2024-06-01"

    def test_value_update_appends_history(self, repo, make_asset):
        """Test that a new current value is historized and stamped today."""
        repo.assets.add(make_asset(id="a1", currentValue=10000))
        stored = repo.assets.update("a1", AssetUpdate(current_value=11000))

        history = repo.assets.list_value_history("a1")
        assert len(history) == 2
        assert history[0].value == 11000
        assert history[0].date == "2024-06-20"
        assert stored.current_value == 11000
        assert stored.last_updated == "2024-06-20"

    def test_value_update_overrides_last_updated(self, repo, make_asset):
        """Test that a caller-supplied last_updated is replaced by today."""
        repo.assets.add(make_asset(id="a1"))
        stored = repo.assets.update(
            "a1", AssetUpdate(current_value=12000, last_updated="1999-01-01")
        )
        assert stored.last_updated == "2024-06-20"

    def test_update_leaves_argument_untouched(self, repo, make_asset):
        """Test that the stamped date is not written back into the update."""
        repo.assets.add(make_asset(id="a1"))
        update = AssetUpdate(current_value=12000)
        repo.assets.update("a1", update)
        assert update.last_updated is UNSET
        assert update.changes() == {"current_value": 12000}

    def test_other_update_writes_no_history(self, repo, make_asset):
        """Test that editing notes does not add a valuation."""
        repo.assets.add(make_asset(id="a1"))
        stored = repo.assets.update("a1", AssetUpdate(notes="rebalanced"))
        assert stored.notes == "rebalanced"
        assert stored.last_updated == "2024-06-01"
        assert len(repo.assets.list_value_history("a1")) == 1

    def test_history_grows_by_one_per_valuation(self, repo, make_asset):
        """Test that history is append-only."""
        repo.assets.add(make_asset(id="a1"))
        for i, value in enumerate([10500, 9800, 12000], start=2):
            repo.assets.update("a1", AssetUpdate(current_value=value))
            assert len(repo.assets.list_value_history("a1")) == i

    def test_update_missing_raises(self, repo):
        """Test updating an unknown asset."""
        with pytest.raises(NotFoundError):
            repo.assets.update("missing", AssetUpdate(current_value=1))
        assert repo.store.scalar("SELECT COUNT(*) FROM asset_value_history") == 0

    def test_list_all_by_value(self, repo, make_asset):
        """Test ordering by current value descending."""
        repo.assets.add(make_asset(id="small", currentValue=50))
        repo.assets.add(make_asset(id="big", currentValue=100))
        assert [a.id for a in repo.assets.list_all()] == ["big", "small"]

    def test_list_by_goal(self, repo, make_asset, make_goal):
        """Test listing the assets linked to one goal."""
        goal = repo.goals.add(make_goal())
        repo.assets.add(make_asset(id="a1", linkedGoalId=goal.id))
        repo.assets.add(make_asset(id="a2"))
        assert [a.id for a in repo.assets.list_by_goal(goal.id)] == ["a1"]

    def test_delete_cascades_history(self, repo, make_asset):
        """Test that deleting an asset removes its valuations."""
        repo.assets.add(make_asset(id="a1"))
        repo.assets.update("a1", AssetUpdate(current_value=5))
        assert repo.assets.delete("a1") is True
        assert repo.assets.get("a1") is None
        assert repo.assets.list_value_history("a1") == []
        assert repo.store.scalar("SELECT COUNT(*) FROM asset_value_history") == 0

    def test_update_rejects_unknown_field(self):
        """Test that unknown payload keys are rejected."""
        with pytest.raises(ConstraintViolationError):
            AssetUpdate.from_dict({"createdAt": "2024-01-01"})
