"""Tests for the pure discovery rules."""

from datetime import datetime, timedelta, timezone

import pytest

from contracts import (
    Clue,
    ClueSource,
    CompletionStatus,
    ContentVisibility,
    DiscoveryMode,
    LocationWithDirection,
    PreviewMode,
    ScanEvent,
    Spot,
    SpotVisibility,
)
from discovery import service
from discovery.ids import create_discovery_id
from geo import GeoLocation, GeoRegion, destination, distance
from helpers import ORIGIN, make_spot, make_trail

ACCOUNT = "walker-1"
T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def three_spots():
    return [
        make_spot("A", ORIGIN),
        make_spot("B", destination(ORIGIN, 200, 90)),
        make_spot("C", destination(ORIGIN, 400, 90)),
    ]


def discovered(spot_id, account_id=ACCOUNT, trail_id="trail-1", at=T0):
    return service.create_discovery(account_id, spot_id, trail_id, now=at)


def scan(spot_ids, successful=True, account_id=ACCOUNT):
    clues = [
        Clue(id=f"{spot_id}-scan", spot_id=spot_id, trail_id="trail-1", location=ORIGIN, source=ClueSource.SCAN_EVENT)
        for spot_id in spot_ids
    ]
    return ScanEvent(id="scan-1", account_id=account_id, trail_id="trail-1", successful=successful, clues=clues)


class TestResolveTargets:
    def test_free_mode_returns_every_spot(self):
        spots = three_spots()
        trail = make_trail(["A", "B", "C"])
        targets = service.resolve_targets(ACCOUNT, trail, [discovered("A")], spots)
        assert [spot.id for spot in targets] == ["A", "B", "C"]

    def test_sequence_mode_returns_undiscovered_in_trail_order(self):
        spots = list(reversed(three_spots()))
        trail = make_trail(["A", "B", "C"], mode=DiscoveryMode.SEQUENCE)
        targets = service.resolve_targets(ACCOUNT, trail, [discovered("A")], spots)
        assert [spot.id for spot in targets] == ["B", "C"]


class TestCreateDiscovery:
    def test_uses_deterministic_id(self):
        record = service.create_discovery(ACCOUNT, "A", "trail-1", scan_event_id="scan-9")
        assert record.id == create_discovery_id(ACCOUNT, "A", "trail-1")
        assert record.scan_event_id == "scan-9"
        assert record.discovered_at.tzinfo is not None
        assert datetime.now(timezone.utc) - record.discovered_at < timedelta(seconds=5)


class TestResolveNewDiscoveries:
    def test_discovers_spot_at_position(self):
        trail = make_trail(["A", "B", "C"])
        found = service.resolve_new_discoveries(ACCOUNT, ORIGIN, three_spots(), [], trail)
        assert [item.spot_id for item in found] == ["A"]
        assert found[0].trail_id == "trail-1"

    def test_never_rediscovers(self):
        trail = make_trail(["A", "B", "C"])
        assert service.resolve_new_discoveries(ACCOUNT, ORIGIN, three_spots(), [discovered("A")], trail) == []

    def test_discovery_on_another_trail_counts(self):
        trail = make_trail(["A", "B", "C"])
        other_trail = discovered("A", trail_id="trail-2")
        assert service.resolve_new_discoveries(ACCOUNT, ORIGIN, three_spots(), [other_trail], trail) == []

    def test_other_accounts_do_not_count(self):
        trail = make_trail(["A", "B", "C"])
        found = service.resolve_new_discoveries(
            ACCOUNT, ORIGIN, three_spots(), [discovered("A", account_id="someone-else")], trail
        )
        assert [item.spot_id for item in found] == ["A"]

    def test_radius_boundary_is_inclusive(self):
        position = destination(ORIGIN, 50, 0)
        measured = distance(position, ORIGIN)
        trail = make_trail(["A"])

        at_edge = [make_spot("A", ORIGIN, radius=measured)]
        assert len(service.resolve_new_discoveries(ACCOUNT, position, at_edge, [], trail)) == 1

        one_meter_further = destination(ORIGIN, measured + 1, 0)
        assert service.resolve_new_discoveries(ACCOUNT, one_meter_further, at_edge, [], trail) == []

    def test_loaded_spots_always_carry_location_and_radius(self):
        with pytest.raises(KeyError):
            Spot.from_dict({"id": "A", "trail_id": "trail-1"})
        spot = Spot.from_dict({"id": "A", "location": {"lat": 51.5, "lon": 7.5}, "options": {"discovery_radius": None}})
        assert spot.options.discovery_radius == 50
        found = service.resolve_new_discoveries(ACCOUNT, ORIGIN, [spot], [], make_trail(["A"]))
        assert [item.spot_id for item in found] == ["A"]

    def test_location_discovery_in_sequence_mode_admits_any_spot_in_range(self):
        trail = make_trail(["A", "B", "C"], mode=DiscoveryMode.SEQUENCE)
        found = service.resolve_new_discoveries(ACCOUNT, destination(ORIGIN, 200, 90), three_spots(), [], trail)
        assert [item.spot_id for item in found] == ["B"]


class TestResolveScanEvent:
    def test_unsuccessful_scan_returns_none(self):
        trail = make_trail(["A", "B", "C"])
        assert service.resolve_scan_event(scan(["A"], successful=False), trail, []) is None

    def test_scan_without_clues_returns_none(self):
        trail = make_trail(["A", "B", "C"])
        assert service.resolve_scan_event(scan([]), trail, []) is None

    def test_sequence_mode_ignores_out_of_order_scan(self):
        trail = make_trail(["A", "B", "C"], mode=DiscoveryMode.SEQUENCE)
        assert service.resolve_scan_event(scan(["B", "C"]), trail, []) == []

    def test_sequence_mode_discovers_only_next_spot(self):
        trail = make_trail(["A", "B", "C"], mode=DiscoveryMode.SEQUENCE)
        found = service.resolve_scan_event(scan(["C", "A", "B"]), trail, [])
        assert [item.spot_id for item in found] == ["A"]
        assert found[0].scan_event_id == "scan-1"

    def test_sequence_mode_advances_after_discovery(self):
        trail = make_trail(["A", "B", "C"], mode=DiscoveryMode.SEQUENCE)
        found = service.resolve_scan_event(scan(["B", "C"]), trail, [discovered("A")])
        assert [item.spot_id for item in found] == ["B"]

    def test_free_mode_discovers_every_scanned_spot(self):
        trail = make_trail(["A", "B", "C"])
        found = service.resolve_scan_event(scan(["B", "C"]), trail, [])
        assert sorted(item.spot_id for item in found) == ["B", "C"]

    def test_free_mode_skips_known_and_foreign_spots(self):
        trail = make_trail(["A", "B", "C"])
        found = service.resolve_scan_event(scan(["B", "C", "Z"]), trail, [discovered("B")])
        assert [item.spot_id for item in found] == ["C"]


class TestCompletion:
    def test_empty_trail_is_zero(self):
        trail = make_trail([])
        assert service.trail_completion_percentage(ACCOUNT, trail, []) == 0
        assert not service.is_trail_completed(ACCOUNT, trail, [])

    def test_percentage_is_monotonic_and_reaches_100(self):
        trail = make_trail(["A", "B", "C"])
        history = []
        seen = []
        for spot_id in ["A", "B", "C"]:
            history.append(discovered(spot_id))
            seen.append(service.trail_completion_percentage(ACCOUNT, trail, history))
        assert seen == [33, 67, 100]
        assert service.is_trail_completed(ACCOUNT, trail, history)

    def test_rounds_half_up(self):
        trail = make_trail([f"S{index}" for index in range(8)])
        assert service.trail_completion_percentage(ACCOUNT, trail, [discovered("S0")]) == 13

    def test_not_completed_with_missing_spot(self):
        trail = make_trail(["A", "B"])
        assert not service.is_trail_completed(ACCOUNT, trail, [discovered("A")])


class TestClues:
    def test_hidden_mode_yields_no_clues(self):
        trail = make_trail(["A", "B", "C"], preview=PreviewMode.HIDDEN)
        assert service.resolve_clues(ACCOUNT, trail, [], three_spots()) == []

    def test_preview_mode_yields_clue_per_undiscovered_spot(self):
        trail = make_trail(["A", "B", "C"])
        clues = service.resolve_clues(ACCOUNT, trail, [discovered("A")], three_spots())
        assert [clue.spot_id for clue in clues] == ["B", "C"]
        assert all(clue.source == ClueSource.PREVIEW for clue in clues)
        assert all(clue.id.startswith(f"{clue.spot_id}-") for clue in clues)
        assert "name" not in clues[0].to_dict()
        assert "description" not in clues[0].to_dict()

    def test_hidden_spots_have_no_clue(self):
        spots = three_spots()
        spots[1] = make_spot("B", spots[1].location, visibility=SpotVisibility.HIDDEN)
        clues = service.resolve_clues(ACCOUNT, make_trail(["A", "B", "C"]), [], spots)
        assert [clue.spot_id for clue in clues] == ["A", "C"]

    def test_public_spots_have_no_clue(self):
        spots = three_spots()
        spots[2] = make_spot("C", spots[2].location, visibility=SpotVisibility.PUBLIC)
        clues = service.resolve_clues(ACCOUNT, make_trail(["A", "B", "C"]), [], spots)
        assert [clue.spot_id for clue in clues] == ["A", "B"]

    def test_unknown_spot_ids_are_skipped(self):
        clues = service.resolve_clues(ACCOUNT, make_trail(["A", "missing"]), [], three_spots())
        assert [clue.spot_id for clue in clues] == ["A"]


class TestSnap:
    def test_nothing_left_to_discover(self):
        assert service.resolve_snap(ORIGIN, three_spots(), ["A", "B", "C"], 500) is None

    def test_nothing_in_range(self):
        far = [make_spot("A", destination(ORIGIN, 2000, 0))]
        snap = service.resolve_snap(ORIGIN, far, [], 500)
        assert (snap.distance, snap.intensity) == (0, 0)

    def test_intensity_is_one_at_zero_distance(self):
        snap = service.resolve_snap(ORIGIN, [make_spot("A", ORIGIN)], [], 500)
        assert snap.distance == 0
        assert snap.intensity == 1

    def test_intensity_is_zero_at_max_range(self):
        spot = make_spot("A", destination(ORIGIN, 300, 0))
        measured = distance(ORIGIN, spot.location)
        snap = service.resolve_snap(ORIGIN, [spot], [], measured)
        assert snap.intensity == 0
        assert snap.distance == 300

    def test_default_range_when_none_given(self):
        snap = service.resolve_snap(ORIGIN, [make_spot("A", destination(ORIGIN, 250, 0))], [])
        assert snap.distance == 250
        assert snap.intensity == pytest.approx(0.75, abs=0.001)

    def test_nearest_unexplored_wins(self):
        snap = service.resolve_snap(ORIGIN, three_spots(), ["A"], 1000)
        assert snap.distance == 200
        assert snap.intensity == pytest.approx(0.8, abs=0.001)

    def test_out_of_range_spots_do_not_hide_nearer_ones(self):
        spots = [make_spot("far", destination(ORIGIN, 900, 180)), make_spot("near", destination(ORIGIN, 100, 0))]
        snap = service.resolve_snap(ORIGIN, spots, [], 500)
        assert snap.distance == 100
        assert snap.intensity == pytest.approx(0.8, abs=0.001)


class TestProcessLocationUpdate:
    def test_single_spot_example(self):
        trail = make_trail(["A"])
        spots = [make_spot("A", GeoLocation(51.5, 7.5), radius=50)]
        record = service.process_location_update(ACCOUNT, LocationWithDirection(GeoLocation(51.5, 7.5)), [], spots, trail)
        assert len(record.discoveries) == 1
        assert record.snap is None

    def test_snap_ignores_spot_discovered_this_tick(self):
        trail = make_trail(["A", "B", "C"], snap_radius=500)
        record = service.process_location_update(
            ACCOUNT, LocationWithDirection(ORIGIN, direction=90), [], three_spots(), trail
        )
        assert [item.spot_id for item in record.discoveries] == ["A"]
        assert record.snap.distance == 200
        assert record.location_with_direction.direction == 90

    def test_scanner_radius_used_when_no_snap_radius(self):
        trail = make_trail(["A", "B", "C"], scanner_radius=100)
        record = service.process_location_update(ACCOUNT, LocationWithDirection(ORIGIN), [], three_spots(), trail)
        assert (record.snap.distance, record.snap.intensity) == (0, 0)


class TestBuildDiscoveryTrail:
    def test_assembles_view(self):
        trail = make_trail(["A", "B", "C"])
        history = [discovered("C", at=T0), discovered("A", at=T0 + timedelta(minutes=5))]
        view = service.build_discovery_trail(ACCOUNT, trail, history, three_spots())
        assert [spot.id for spot in view.spots] == ["C", "A"]
        assert view.spots[0].discovered_at == T0
        assert view.spots[0].discovery_id == history[0].id
        assert [clue.spot_id for clue in view.preview_clues] == ["B"]
        assert len(view.discoveries) == 2

    def test_clues_outside_default_radius_are_dropped(self):
        trail = make_trail(["A", "B", "C"])
        far_away = destination(ORIGIN, 10000, 180)
        view = service.build_discovery_trail(ACCOUNT, trail, [], three_spots(), user_location=far_away)
        assert view.preview_clues == []

    def test_trail_region_frames_the_map(self):
        trail = make_trail(["A", "B", "C"], region=GeoRegion(center=ORIGIN, radius_km=2))
        far_away = destination(ORIGIN, 10000, 180)
        view = service.build_discovery_trail(ACCOUNT, trail, [], three_spots(), user_location=far_away)
        assert [clue.spot_id for clue in view.preview_clues] == ["A", "B", "C"]


class TestStats:
    def test_discovery_stats(self):
        spots = three_spots()
        first = discovered("A", at=T0)
        second = discovered("B", at=T0 + timedelta(minutes=10))
        rival = discovered("B", account_id="rival", at=T0 + timedelta(minutes=1))
        stats = service.discovery_stats(second, [rival, second], [first, second], ["A", "B", "C"], spots)
        assert stats.rank == 2
        assert stats.total_discoverers == 2
        assert stats.trail_position == 2
        assert stats.trail_total == 3
        assert stats.time_since_last_discovery == 600
        assert stats.distance_from_last_discovery == 200

    def test_first_discovery_has_no_previous(self):
        first = discovered("A", at=T0)
        stats = service.discovery_stats(first, [first], [first], ["A", "B"], three_spots())
        assert stats.rank == 1
        assert stats.time_since_last_discovery is None
        assert stats.distance_from_last_discovery is None

    def test_trail_stats(self):
        history = [
            discovered("A", at=T0),
            discovered("B", at=T0 + timedelta(minutes=30)),
            discovered("A", account_id="rival", at=T0),
            discovered("B", account_id="rival", at=T0 + timedelta(minutes=10)),
            discovered("C", account_id="rival", at=T0 + timedelta(minutes=20)),
            discovered("A", account_id="slow", at=T0),
        ]
        stats = service.trail_stats(ACCOUNT, "trail-1", history, ["A", "B", "C"])
        assert stats.discovered_spots == 2
        assert stats.progress_percentage == 67
        assert stats.completion_status == CompletionStatus.IN_PROGRESS
        assert stats.rank == 2
        assert stats.total_discoverers == 3
        assert stats.first_discovered_at == T0
        assert stats.average_time_between_discoveries == 1800

        rival = service.trail_stats("rival", "trail-1", history, ["A", "B", "C"])
        assert rival.completion_status == CompletionStatus.COMPLETED
        assert rival.rank == 1

        newcomer = service.trail_stats("newcomer", "trail-1", history, ["A", "B", "C"])
        assert newcomer.completion_status == CompletionStatus.NOT_STARTED
        assert newcomer.rank == 0
        assert newcomer.progress_percentage == 0


class TestContentAndReactions:
    def test_update_keeps_unspecified_fields(self):
        content = service.create_discovery_content(discovered("A"), comment="Lovely view", image_url="https://img/1.jpg")
        updated = service.update_discovery_content(content, visibility=ContentVisibility.PUBLIC)
        assert updated.id == content.id
        assert updated.comment == "Lovely view"
        assert updated.image_url == "https://img/1.jpg"
        assert updated.visibility == ContentVisibility.PUBLIC
        assert updated.created_at == content.created_at

    @pytest.mark.parametrize("rating,expected", [(7, 5), (0, 1), (3.5, 4), (2.4, 2)])
    def test_rating_is_clamped(self, rating, expected):
        assert service.create_reaction("d1", ACCOUNT, rating).rating == expected

    def test_reaction_summary(self):
        reactions = [
            service.create_reaction("d1", ACCOUNT, 5),
            service.create_reaction("d1", "b", 4),
            service.create_reaction("d1", "c", 4),
        ]
        summary = service.reaction_summary(reactions, ACCOUNT)
        assert summary.average == 4.3
        assert summary.count == 3
        assert summary.user_rating == 5
        assert service.reaction_summary([], ACCOUNT).count == 0
