"""Tests for tour dedup tracking and aggregation."""

from pantryscan.scan.tour import DedupTracker, TourAggregator, TourContext


class TestDedupTracker:
    def test_lookup_case_insensitive(self):
        tracker = DedupTracker()
        tracker.register("Milk", "Fridge (Shelves)")
        assert tracker.lookup("  MILK ") == "Fridge (Shelves)"
        assert tracker.lookup("Bread") is None

    def test_first_entry_wins(self):
        tracker = DedupTracker()
        tracker.register("Milk", "Fridge (Shelves)")
        tracker.register("milk", "Fridge Door")
        assert tracker.lookup("Milk") == "Fridge (Shelves)"
        assert tracker.names() == ["Milk", "milk"]

    def test_clear(self):
        tracker = DedupTracker()
        tracker.register("Milk", "Freezer")
        tracker.clear()
        assert len(tracker) == 0
        assert tracker.lookup("Milk") is None


class TestTourAggregator:
    def test_summarize_merges_categories(self):
        agg = TourAggregator()
        agg.record_area_result("fridge_shelves", 3, {"Dairy & Eggs": 2, "Vegetables": 1},
                               area_name="Fridge (Shelves)")
        agg.record_area_result("pantry", 2, {"Vegetables": 1, "Canned Goods": 1},
                               area_name="Pantry / Cabinet")
        summary = agg.summarize()
        assert summary.per_area == {"Fridge (Shelves)": 3, "Pantry / Cabinet": 2}
        assert summary.total_items == 5
        assert summary.category_breakdown == {
            "Dairy & Eggs": 2, "Vegetables": 2, "Canned Goods": 1,
        }

    def test_recommitted_area_replaces_count(self):
        agg = TourAggregator()
        agg.record_area_result("freezer", 2, {})
        agg.record_area_result("freezer", 4, {})
        assert agg.completed_areas == {"freezer": 4}
        assert agg.summarize().per_area == {"freezer": 4}

    def test_empty(self):
        summary = TourAggregator().summarize()
        assert summary.per_area == {}
        assert summary.total_items == 0
        assert summary.category_breakdown == {}


class TestTourContext:
    def test_record_commit_registers_names(self):
        tour = TourContext()
        tour.record_commit("freezer", "Freezer", ["Ice Cream", "Peas"], {"Frozen Foods": 2})
        assert tour.dedup.lookup("peas") == "Freezer"
        assert tour.aggregator.completed_areas == {"freezer": 2}

    def test_quick_scan_has_no_area_count(self):
        tour = TourContext()
        tour.record_commit(None, "Quick Scan", ["Milk"], {"Dairy & Eggs": 1})
        assert tour.dedup.lookup("Milk") == "Quick Scan"
        summary = tour.aggregator.summarize()
        assert summary.per_area == {}
        assert summary.category_breakdown == {"Dairy & Eggs": 1}

    def test_reset(self):
        tour = TourContext()
        tour.record_commit("freezer", "Freezer", ["Peas"], {"Frozen Foods": 1})
        tour.reset()
        assert tour.dedup.names() == []
        assert tour.aggregator.summarize().total_items == 0
