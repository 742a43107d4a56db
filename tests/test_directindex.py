"""Tests for the direct index compiler."""

import yaml

from fmu_annotate.directindex import (
    SCALAR_WIDTH,
    SLOT_STRIDE,
    DirectIndex,
    build_direct_index,
    is_index_document,
)
from fmu_annotate.documents import DocumentIndex, Kind


def _add(di, group_name, signals):
    group = di.get_or_create_group(group_name)
    for signal in signals:
        di.add_signal(group, signal)
    return group


class TestGroupsAndSignals:
    """Test group creation and signal insertion."""

    def test_duplicate_signal_collapses(self):
        """Adding a name already in the group is a no-op."""
        di = DirectIndex()
        group = _add(di, "foo", ["one", "two", "two", "three"])

        assert len(di.groups) == 1
        assert group.name == "foo"
        assert [s.name for s in group.signals] == ["one", "two", "three"]
        assert "two" in group

    def test_get_or_create_returns_existing(self):
        di = DirectIndex()
        first = di.get_or_create_group("foo")
        second = di.get_or_create_group("foo")
        assert first is second
        assert len(di.groups) == 1

    def test_group_lookup_by_name(self):
        di = DirectIndex()
        foo = di.get_or_create_group("foo")
        assert di.group("foo") is foo
        assert di.group("bar") is None
        assert len(di.groups) == 1

    def test_groups_keep_first_seen_order(self):
        di = DirectIndex()
        for name in ["b", "a", "c", "a", "b"]:
            di.get_or_create_group(name)
        assert [g.name for g in di.groups] == ["b", "a", "c"]

    def test_duplicate_add_keeps_length_and_offsets(self):
        di = DirectIndex()
        group = _add(di, "foo", ["one", "two", "three"])
        di.calculate_offsets()
        before = [(s.name, s.byte_offset) for s in group.signals]

        di.add_signal(group, "two")
        di.calculate_offsets()

        assert group.length == 3
        assert [(s.name, s.byte_offset) for s in group.signals] == before


class TestCalculateOffsets:
    """Test offset calculation over all groups."""

    def test_reference_map(self):
        """foo, bar then (after a first calculation) Fubar."""
        di = DirectIndex()
        foo = _add(di, "foo", ["one", "two", "two", "three"])
        bar = _add(di, "bar", ["four", "five", "six"])
        di.calculate_offsets()
        fubar = _add(di, "Fubar", ["fu"])
        di.calculate_offsets()

        assert (foo.offset_units, foo.length) == (0, 3)
        assert [s.byte_offset for s in foo.signals] == [0, 8, 16]
        assert [s.local_index for s in foo.signals] == [0, 1, 2]

        assert (bar.offset_units, bar.length) == (3, 3)
        assert [s.byte_offset for s in bar.signals] == [72, 80, 88]
        assert [s.local_index for s in bar.signals] == [0, 1, 2]

        assert (fubar.offset_units, fubar.length) == (6, 1)
        assert fubar.signals[0].byte_offset == 144

    def test_offset_formula(self):
        """Offset is prior signal count times the stride plus the scalar position."""
        di = DirectIndex()
        _add(di, "a", ["a1", "a2"])
        group = _add(di, "b", [f"s{i}" for i in range(1, 6)])
        di.calculate_offsets()

        for i, signal in enumerate(group.signals, start=1):
            assert signal.byte_offset == 2 * SLOT_STRIDE + (i - 1) * SCALAR_WIDTH

    def test_idempotent(self):
        """Recalculating without changes leaves every offset in place."""
        di = DirectIndex()
        _add(di, "foo", ["one", "two"])
        _add(di, "bar", ["three"])
        di.calculate_offsets()
        first = [(g.offset_units, g.length, [s.byte_offset for s in g.signals]) for g in di.groups]
        di.calculate_offsets()
        di.calculate_offsets()
        second = [(g.offset_units, g.length, [s.byte_offset for s in g.signals]) for g in di.groups]
        assert first == second

    def test_incremental_growth_keeps_earlier_groups(self):
        """A group added later starts after all earlier signals."""
        di = DirectIndex()
        a = _add(di, "a", ["x", "y", "z", "w"])
        di.calculate_offsets()
        a_offsets = [s.byte_offset for s in a.signals]

        b = _add(di, "b", ["p"])
        di.calculate_offsets()

        assert [s.byte_offset for s in a.signals] == a_offsets
        assert b.offset_units == 4
        assert b.signals[0].byte_offset == 4 * 24

    def test_interleaved_equals_single_pass(self):
        interleaved = DirectIndex()
        g = interleaved.get_or_create_group("foo")
        for name in ["one", "two"]:
            interleaved.add_signal(g, name)
            interleaved.calculate_offsets()
        _add(interleaved, "bar", ["three"])
        interleaved.calculate_offsets()

        single = DirectIndex()
        _add(single, "foo", ["one", "two"])
        _add(single, "bar", ["three"])
        single.calculate_offsets()

        assert interleaved.lookup("bar", "three") == single.lookup("bar", "three") == (48, True)
        assert interleaved.lookup("foo", "two") == single.lookup("foo", "two")


class TestLookup:
    """Test signal offset lookup."""

    def test_lookup_found(self):
        di = DirectIndex()
        _add(di, "foo", ["one", "two", "three"])
        _add(di, "bar", ["four", "five", "six"])
        di.calculate_offsets()

        assert di.lookup("foo", "one") == (0, True)
        assert di.lookup("foo", "three") == (16, True)
        assert di.lookup("bar", "five") == (3 * 24 + 8, True)

    def test_lookup_missing(self):
        """Unknown groups and signals report not found with offset 0."""
        di = DirectIndex()
        _add(di, "foo", ["one"])
        di.calculate_offsets()

        assert di.lookup("foo", "missing") == (0, False)
        assert di.lookup("nope", "one") == (0, False)


class TestEmit:
    """Test writing the index as SignalGroup documents."""

    def test_emit_documents(self, tmp_path):
        di = DirectIndex()
        _add(di, "foo", ["one", "two", "three"])
        _add(di, "bar", ["four", "five", "six"])
        di.calculate_offsets()

        path = di.emit(tmp_path / "data" / "direct_index.yaml")

        assert path.exists()
        docs = list(yaml.safe_load_all(path.read_text()))
        assert [d["metadata"]["name"] for d in docs] == ["foo", "bar"]
        foo, bar = docs
        assert foo["kind"] == "SignalGroup"
        assert foo["metadata"]["labels"] == {"index": "direct"}
        assert foo["metadata"]["annotations"]["direct_index"] == {"offset": 0, "length": 3}
        assert bar["metadata"]["annotations"]["direct_index"] == {"offset": 3, "length": 3}
        assert foo["spec"]["signals"][2] == {
            "signal": "three",
            "annotations": {"index": 2, "offset": 16},
        }
        assert bar["spec"]["signals"][0]["annotations"] == {"index": 0, "offset": 72}

    def test_emitted_file_scans_as_index_documents(self, tmp_path):
        di = DirectIndex()
        _add(di, "foo", ["one"])
        di.calculate_offsets()
        di.emit(tmp_path / "direct_index.yaml")

        index = DocumentIndex()
        index.scan(tmp_path)
        docs = index.documents(Kind.SIGNAL_GROUP)
        assert len(docs) == 1
        assert is_index_document(docs[0])
        assert docs[0].signals[0].annotations == {"index": 0, "offset": 0}


class TestBuildDirectIndex:
    """Test compiling the index from a scanned simulation."""

    def test_build_from_simulation(self, sim_index):
        groups = sim_index.documents(Kind.SIGNAL_GROUP)
        di = build_direct_index(sim_index, groups)

        # The binary network group is not wired to any channel and is skipped.
        assert [g.name for g in di.groups] == ["in", "out"]
        assert di.lookup("in", "in_a") == (0, True)
        assert di.lookup("in", "in_c") == (16, True)
        assert di.lookup("out", "out_a") == (72, True)
        assert di.lookup("out", "out_c") == (88, True)
        assert di.lookup("out", "local_x") == (96, True)

    def test_build_is_reproducible(self, sim_index):
        groups = sim_index.documents(Kind.SIGNAL_GROUP)
        first = build_direct_index(sim_index, groups)
        second = build_direct_index(sim_index, groups)
        assert [(g.name, [(s.name, s.byte_offset) for s in g.signals]) for g in first.groups] == [
            (g.name, [(s.name, s.byte_offset) for s in g.signals]) for g in second.groups
        ]

    def test_index_documents_are_ignored(self, sim_dir):
        """A previously emitted index does not feed into the next build."""
        di = DirectIndex()
        _add(di, "stale", ["old"])
        di.calculate_offsets()
        di.emit(sim_dir / "data" / "direct_index.yaml")

        index = DocumentIndex()
        index.scan(sim_dir)
        rebuilt = build_direct_index(index, index.documents(Kind.SIGNAL_GROUP))
        assert [g.name for g in rebuilt.groups] == ["in", "out"]
