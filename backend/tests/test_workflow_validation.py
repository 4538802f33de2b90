"""Tests for validate_workflow and block status."""

import pytest

from blockflow.workflow import BlockStatus, IssueCode


ZONE_FIELD = {"type": "text", "label": "Zone Name", "default": "myZone", "required": True}
DELAY_FIELD = {"type": "number", "label": "Delay (ms)", "default": 0, "min": 0}


class TestOrphans:
    """Disconnected-block check."""

    def test_single_block_is_valid(self, make_block, build_engine):
        """A lone block with nothing required is a valid workflow."""
        result = build_engine([make_block("timer-1")], []).validate_workflow()

        assert result.is_valid
        assert result.errors == []

    def test_empty_workflow_is_valid(self, build_engine):
        """No blocks means nothing to complain about."""
        assert build_engine([], []).validate_workflow().is_valid

    def test_two_isolated_blocks(self, make_block, build_engine):
        """Two unconnected blocks produce one aggregated error."""
        result = build_engine([make_block("timer-1"), make_block("a")], []).validate_workflow()

        assert not result.is_valid
        assert result.errors == ["Found 2 disconnected blocks"]
        issue = result.issues[0]
        assert issue.code == IssueCode.DISCONNECTED_BLOCKS
        assert issue.count == 2
        assert issue.block_ids == ["timer-1", "a"]

    def test_dangling_connection_counts_as_connected(self, make_block, connect, build_engine):
        """Any connection endpoint naming a block keeps it from being orphaned."""
        blocks = [make_block("a"), make_block("b"), make_block("c")]
        engine = build_engine(blocks, [connect("a", "b"), connect("c", "ghost")])

        assert engine.find_orphaned_blocks() == []


class TestRequiredFields:
    """Missing required configuration."""

    def test_missing_required_field(self, make_block, build_engine):
        """An unset required field is reported with block name and label."""
        block = make_block("player-enters-1", name="Player Enters Zone",
                           config={"zoneName": ZONE_FIELD, "delay": DELAY_FIELD})
        result = build_engine([block], []).validate_workflow()

        assert result.errors == ['Block "Player Enters Zone" is missing required field: Zone Name']
        issue = result.issues[0]
        assert issue.code == IssueCode.MISSING_REQUIRED_FIELD
        assert issue.block_ids == ["player-enters-1"]
        assert issue.field_key == "zoneName"
        assert issue.field_label == "Zone Name"

    @pytest.mark.parametrize("value", [0, False])
    def test_zero_and_false_are_present(self, make_block, build_engine, value):
        """0 and False satisfy a required field."""
        block = make_block("move-player-1", config={"x": {"label": "X Position", "required": True}},
                           user_config={"x": value})
        assert build_engine([block], []).validate_workflow().is_valid

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values_are_missing(self, make_block, build_engine, value):
        """None and the empty string do not satisfy a required field."""
        block = make_block("move-player-1", config={"x": {"label": "X Position", "required": True}},
                           user_config={"x": value})
        assert len(build_engine([block], []).validate_workflow().errors) == 1

    def test_errors_accumulate_per_field(self, make_block, connect, build_engine):
        """Three blocks each missing two fields give six errors."""
        schema = {
            "x": {"label": "X Position", "required": True},
            "y": {"label": "Y Position", "required": True},
        }
        blocks = [make_block(f"move-player-{i}", name=f"Move {i}", config=schema) for i in range(3)]
        connections = [connect("move-player-0", "move-player-1"), connect("move-player-1", "move-player-2")]

        errors = build_engine(blocks, connections).validate_workflow().errors
        assert errors == [
            'Block "Move 0" is missing required field: X Position',
            'Block "Move 0" is missing required field: Y Position',
            'Block "Move 1" is missing required field: X Position',
            'Block "Move 1" is missing required field: Y Position',
            'Block "Move 2" is missing required field: X Position',
            'Block "Move 2" is missing required field: Y Position',
        ]


class TestCycleAndOrdering:
    """Cycle error and combined results."""

    def test_cycle_error(self, make_block, connect, build_engine):
        """A cycle yields exactly one circular-dependency error."""
        blocks = [make_block("a"), make_block("b"), make_block("c")]
        connections = [connect("a", "b"), connect("b", "c"), connect("c", "a"), connect("b", "a")]

        result = build_engine(blocks, connections).validate_workflow()
        assert result.errors == ["Workflow contains circular dependencies"]
        assert result.issues[0].code == IssueCode.CIRCULAR_DEPENDENCY

    def test_all_checks_run_in_order(self, make_block, connect, build_engine):
        """Orphans, missing fields and cycles are all reported, in that order."""
        blocks = [
            make_block("a", name="A", config={"zoneName": ZONE_FIELD}),
            make_block("b"),
            make_block("lonely"),
        ]
        connections = [connect("a", "b"), connect("b", "a")]

        result = build_engine(blocks, connections).validate_workflow()
        assert result.errors == [
            "Found 1 disconnected blocks",
            'Block "A" is missing required field: Zone Name',
            "Workflow contains circular dependencies",
        ]
        assert [i.code for i in result.issues_for_block("a")] == [IssueCode.MISSING_REQUIRED_FIELD]
        assert len(result.issues_with_code(IssueCode.CIRCULAR_DEPENDENCY)) == 1

    def test_to_dict(self, make_block, build_engine):
        """The banner payload uses isValid / errors."""
        result = build_engine([make_block("a"), make_block("b")], []).validate_workflow()
        assert result.to_dict() == {"isValid": False, "errors": ["Found 2 disconnected blocks"]}


class TestBlockStatus:
    """Per-block completion status."""

    def test_status(self, make_block, build_engine):
        """Blocks without missing required fields are complete."""
        blocks = [
            make_block("timer-1"),
            make_block("player-enters-2", config={"zoneName": ZONE_FIELD}),
            make_block("player-enters-3", config={"zoneName": ZONE_FIELD}, user_config={"zoneName": "lobby"}),
        ]
        engine = build_engine(blocks, [])

        assert engine.get_block_status("timer-1") == BlockStatus.COMPLETE
        assert engine.get_block_status("player-enters-2") == BlockStatus.INCOMPLETE
        assert engine.get_block_status("player-enters-3") == BlockStatus.COMPLETE
        assert engine.get_block_status("missing") is None
