"""
Tests for the editor operations on positioned graphs.
"""

import pytest
from copy import deepcopy

from flowedit.flow import editor
from flowedit.flow.editor import (
    DuplicateNodeIdError,
    EdgeNotFoundError,
    EditorState,
    FlowEditError,
    NodeNotFoundError,
)
from flowedit.flow.models import (
    EDGE_LABEL_PLACEHOLDER,
    Edge,
    FlowDocument,
    Node,
    Position,
    PositionedEdge,
    PositionedGraph,
    PositionedNode,
)
from flowedit.workflows.order_flow import create_order_flow


def make_state() -> EditorState:
    document = FlowDocument(
        start_node_id="a",
        nodes=[
            Node(id="a", description="A", prompt="At a", edges=[Edge("b", "to b")]),
            Node(id="b", description="B", prompt="At b", edges=[Edge("a", "back"), Edge("c", "on")]),
            Node(id="c", description="C", prompt="At c"),
        ],
    )
    return editor.select(EditorState.from_document(document), node_id="a")


# ============================================================
# Import / Export
# ============================================================

class TestEditorState:
    """Tests for EditorState import and export."""

    def test_from_document_round_trip(self):
        """Test importing and exporting a document."""
        document = create_order_flow()
        state = EditorState.from_document(document)

        assert state.start_node_id == "greeting"
        assert state.document() == document

    def test_demo_flow_is_valid(self):
        """Test that the shipped demo flow validates cleanly."""
        state = EditorState.from_document(create_order_flow())
        assert state.validate() == []
        assert state.validate(strict_reachability=True) == []

    def test_empty_state(self):
        """Test the empty editor state."""
        state = EditorState()
        assert state.document() == FlowDocument(start_node_id="", nodes=[])


# ============================================================
# Node Operations
# ============================================================

class TestAddNode:
    """Tests for adding nodes."""

    def test_first_node_becomes_start(self):
        """Test that the first node of an empty flow is the start node."""
        state = editor.add_node(EditorState())

        assert state.graph.node_ids() == ["node_1"]
        assert state.start_node_id == "node_1"
        assert state.selected_node_id == "node_1"

    def test_second_node_keeps_start(self):
        """Test that later nodes do not take over the start."""
        state = editor.add_node(editor.add_node(EditorState()))

        assert state.graph.node_ids() == ["node_1", "node_2"]
        assert state.start_node_id == "node_1"
        assert state.graph.nodes[1].position == Position(250, 0)

    def test_explicit_fields(self):
        """Test adding a node with id, position and text."""
        state = editor.add_node(
            EditorState(),
            node_id="welcome",
            position=Position(10, 20),
            description="Greets",
            prompt="Hi",
        )

        added = state.graph.get_node("welcome")
        assert added.position == Position(10, 20)
        assert added.description == "Greets"
        assert added.prompt == "Hi"

    def test_duplicate_id_rejected(self):
        """Test that adding an existing id raises."""
        state = make_state()
        with pytest.raises(DuplicateNodeIdError):
            editor.add_node(state, node_id="a")

    def test_blank_id_rejected(self):
        """Test that an explicit empty id raises."""
        with pytest.raises(FlowEditError):
            editor.add_node(make_state(), node_id="")

    def test_new_node_is_disconnected(self):
        """Test that a fresh node shows up as incomplete and disconnected."""
        state = editor.add_node(make_state(), node_id="d")
        error_fields = [e.field for e in state.validate()]

        assert "node_d_description" in error_fields
        assert "node_d_prompt" in error_fields
        assert "node_d_disconnected" in error_fields


class TestRenameNode:
    """Tests for the node rename cascade."""

    def test_rename_rewrites_all_references(self):
        """Test that node, edges, start and selection all follow a rename."""
        state = make_state()
        edge_ids = [e.id for e in state.graph.edges]

        renamed = editor.rename_node(state, "a", "start")

        assert renamed.graph.node_ids() == ["start", "b", "c"]
        assert [(e.source, e.target) for e in renamed.graph.edges] == [
            ("start", "b"),
            ("b", "start"),
            ("b", "c"),
        ]
        assert [e.id for e in renamed.graph.edges] == edge_ids
        assert renamed.start_node_id == "start"
        assert renamed.selected_node_id == "start"
        assert renamed.validate() == []

    def test_rename_leaves_original_untouched(self):
        """Test that renaming returns a new state."""
        state = make_state()
        before = deepcopy(state)

        editor.rename_node(state, "a", "start")

        assert state == before

    def test_rename_to_existing_id(self):
        """Test that renaming onto another node's id raises."""
        state = make_state()
        before = deepcopy(state)

        with pytest.raises(DuplicateNodeIdError):
            editor.rename_node(state, "a", "b")
        assert state == before

    def test_rename_missing_node(self):
        """Test renaming a node that does not exist."""
        with pytest.raises(NodeNotFoundError):
            editor.rename_node(make_state(), "nope", "x")

    def test_rename_to_same_id(self):
        """Test that renaming to the same id is a no-op."""
        state = make_state()
        assert editor.rename_node(state, "a", "a") is state

    @pytest.mark.parametrize("new_id", ["", "   "])
    def test_rename_to_blank_id(self, new_id):
        """Test that a node cannot be renamed to an empty id."""
        state = make_state()
        before = deepcopy(state)

        with pytest.raises(FlowEditError):
            editor.rename_node(state, "a", new_id)
        assert state == before

    def test_rename_first_of_duplicates(self):
        """Test that only the first duplicate is renamed and references stay."""
        state = EditorState.from_document(
            FlowDocument(
                start_node_id="a",
                nodes=[
                    Node(id="a", edges=[Edge("b", "go")]),
                    Node(id="a"),
                    Node(id="b", edges=[Edge("a", "back")]),
                ],
            )
        )

        renamed = editor.rename_node(state, "a", "first")

        assert renamed.graph.node_ids() == ["first", "a", "b"]
        assert [(e.source, e.target) for e in renamed.graph.edges] == [("a", "b"), ("b", "a")]
        assert renamed.start_node_id == "a"


class TestUpdateNode:
    """Tests for updating node fields."""

    def test_update_fields(self):
        """Test updating description, prompt and position."""
        state = editor.update_node(
            make_state(), "b",
            description="New B",
            prompt="New prompt",
            position=Position(1, 2),
        )

        updated = state.graph.get_node("b")
        assert updated.description == "New B"
        assert updated.prompt == "New prompt"
        assert updated.position == Position(1, 2)

    def test_update_with_rename(self):
        """Test field changes and rename in one update."""
        state = editor.update_node(make_state(), "b", new_id="middle", prompt="Middle")

        assert state.graph.get_node("middle").prompt == "Middle"
        assert state.document().nodes[0].edges[0].to_node_id == "middle"

    def test_failed_rename_applies_nothing(self):
        """Test that a rejected rename also drops the field changes."""
        state = make_state()
        before = deepcopy(state)

        with pytest.raises(DuplicateNodeIdError):
            editor.update_node(state, "b", new_id="c", prompt="Changed")
        assert state == before

    def test_update_missing_node(self):
        """Test updating a node that does not exist."""
        with pytest.raises(NodeNotFoundError):
            editor.update_node(make_state(), "nope", prompt="x")

    def test_blank_rename_applies_nothing(self):
        """Test that an empty new id rejects the whole update."""
        state = make_state()
        before = deepcopy(state)

        with pytest.raises(FlowEditError):
            editor.update_node(state, "b", new_id="", prompt="Changed")
        assert state == before

    def test_update_first_of_duplicates(self):
        """Test that field updates touch only the first node with an id."""
        state = EditorState.from_document(
            FlowDocument(nodes=[Node(id="a", prompt="one"), Node(id="a", prompt="two")])
        )

        state = editor.update_node(state, "a", prompt="changed")

        assert [n.prompt for n in state.graph.nodes] == ["changed", "two"]


class TestDeleteNode:
    """Tests for deleting nodes."""

    def test_delete_removes_incident_edges(self):
        """Test that all edges touching the node go with it."""
        state = editor.delete_node(make_state(), "b")

        assert state.graph.node_ids() == ["a", "c"]
        assert state.graph.edges == []

    def test_delete_start_node_picks_first_remaining(self):
        """Test start node reassignment."""
        state = editor.delete_node(make_state(), "a")

        assert state.start_node_id == "b"
        assert state.selected_node_id is None

    def test_delete_last_node(self):
        """Test deleting the only node clears the start node."""
        state = editor.add_node(EditorState(), node_id="only")
        state = editor.delete_node(state, "only")

        assert state.start_node_id is None
        assert state.document().start_node_id == ""

    def test_delete_clears_removed_edge_selection(self):
        """Test that a selected edge removed with its node is deselected."""
        state = make_state()
        edge_id = state.graph.edges[0].id
        state = editor.select(state, edge_id=edge_id)

        state = editor.delete_node(state, "b")

        assert state.selected_edge_id is None

    def test_delete_missing_node(self):
        """Test deleting a node that does not exist."""
        with pytest.raises(NodeNotFoundError):
            editor.delete_node(make_state(), "nope")

    def test_delete_first_of_duplicates(self):
        """Test that a remaining duplicate keeps the edges and start node."""
        state = EditorState.from_document(
            FlowDocument(
                start_node_id="a",
                nodes=[
                    Node(id="a", prompt="one", edges=[Edge("b", "go")]),
                    Node(id="a", prompt="two"),
                    Node(id="b"),
                ],
            )
        )

        state = editor.delete_node(state, "a")

        assert [n.prompt for n in state.graph.nodes] == ["two", ""]
        assert [(e.source, e.target) for e in state.graph.edges] == [("a", "b")]
        assert state.start_node_id == "a"


class TestStartAndSelection:
    """Tests for start node and selection changes."""

    def test_set_start_node(self):
        """Test designating the start node."""
        state = editor.set_start_node(make_state(), "c")
        assert state.document().start_node_id == "c"

    def test_set_missing_start_node(self):
        """Test designating a node that does not exist."""
        with pytest.raises(NodeNotFoundError):
            editor.set_start_node(make_state(), "nope")

    def test_select_edge_clears_node(self):
        """Test that node and edge selection are exclusive."""
        state = make_state()
        state = editor.select(state, edge_id=state.graph.edges[0].id)

        assert state.selected_node_id is None
        assert state.selected_edge_id == state.graph.edges[0].id

    def test_select_both_rejected(self):
        """Test that selecting a node and an edge at once raises."""
        state = make_state()
        with pytest.raises(FlowEditError):
            editor.select(state, node_id="a", edge_id=state.graph.edges[0].id)

    def test_clear_selection(self):
        """Test clearing the selection."""
        state = editor.select(make_state())
        assert state.selected_node_id is None
        assert state.selected_edge_id is None


# ============================================================
# Edge Operations
# ============================================================

class TestEdgeOperations:
    """Tests for adding, updating and deleting edges."""

    def test_add_edge(self):
        """Test connecting two nodes."""
        state = editor.add_edge(make_state(), "c", "a", condition="restart", parameters={"k": "v"})

        new_edge = state.graph.edges[-1]
        assert new_edge.id == "edge_c_a_0"
        assert (new_edge.source, new_edge.target) == ("c", "a")
        assert state.document().nodes[2].edges == [
            Edge(to_node_id="a", condition="restart", parameters={"k": "v"}),
        ]

    def test_add_parallel_edge_gets_unique_id(self):
        """Test that a second edge between the same nodes gets a new id."""
        state = editor.add_edge(make_state(), "a", "b")
        ids = [e.id for e in state.graph.edges]

        assert "edge_a_b_0" in ids
        assert "edge_a_b_1" in ids
        assert len(ids) == len(set(ids))

    def test_new_edge_needs_condition(self):
        """Test that a fresh edge shows the placeholder and fails validation."""
        state = editor.add_edge(make_state(), "c", "a")

        assert state.graph.edges[-1].display_label == EDGE_LABEL_PLACEHOLDER
        assert "node_c_edge_0_condition" in [e.field for e in state.validate()]

    def test_add_edge_to_missing_node(self):
        """Test connecting to a node that does not exist."""
        with pytest.raises(NodeNotFoundError):
            editor.add_edge(make_state(), "a", "ghost")

    def test_update_edge(self):
        """Test changing condition, parameters and target."""
        state = make_state()
        edge_id = state.graph.edges[0].id

        state = editor.update_edge(
            state, edge_id,
            condition="skip ahead",
            parameters={"mode": "fast"},
            target="c",
        )

        assert state.document().nodes[0].edges == [
            Edge(to_node_id="c", condition="skip ahead", parameters={"mode": "fast"}),
        ]

    def test_label_fills_blank_condition(self):
        """Test that a label typed on a new edge becomes its condition."""
        state = editor.add_edge(make_state(), "c", "a")
        edge_id = state.graph.edges[-1].id

        state = editor.update_edge(state, edge_id, label="user says yes")

        edge = state.graph.get_edge(edge_id)
        assert edge.display_label == "user says yes"
        assert state.document().nodes[2].edges[0].condition == "user says yes"
        assert not [e for e in state.validate() if e.field.endswith("_condition")]

    def test_label_does_not_override_condition(self):
        """Test that a canvas label is ignored while a condition exists."""
        state = make_state()
        edge_id = state.graph.edges[0].id

        state = editor.update_edge(state, edge_id, label="typed on canvas")

        assert state.document().nodes[0].edges[0].condition == "to b"
        assert state.graph.get_edge(edge_id).display_label == "to b"

    def test_explicit_condition_beats_label(self):
        """Test that a condition sent with a label wins."""
        state = make_state()
        edge_id = state.graph.edges[0].id

        state = editor.update_edge(state, edge_id, condition="", label="typed on canvas")

        assert state.document().nodes[0].edges[0].condition == ""
        assert state.graph.get_edge(edge_id).display_label == EDGE_LABEL_PLACEHOLDER

    def test_placeholder_label_is_ignored(self):
        """Test that echoing the placeholder back does not set a condition."""
        state = editor.add_edge(make_state(), "c", "a")
        edge_id = state.graph.edges[-1].id

        state = editor.update_edge(state, edge_id, label=EDGE_LABEL_PLACEHOLDER)

        assert state.document().nodes[2].edges[0].condition == ""

    def test_display_label_matches_document(self):
        """Test that every canvas label shows the exported condition."""
        state = editor.add_edge(make_state(), "c", "a")
        state = editor.update_edge(state, state.graph.edges[0].id, condition="")
        state = editor.update_edge(state, state.graph.edges[1].id, label="ignored")
        state = editor.update_edge(state, state.graph.edges[-1].id, label="typed")

        document = state.document()
        for edge in state.graph.edges:
            node = document.get_node(edge.source)
            index = state.graph.outgoing_edges(edge.source).index(edge)
            expected = node.edges[index].condition or EDGE_LABEL_PLACEHOLDER
            assert edge.display_label == expected

    def test_label_used_when_condition_absent(self):
        """Test that a label becomes the condition for edges without one."""
        state = EditorState(
            graph=PositionedGraph(
                nodes=[PositionedNode(id="a"), PositionedNode(id="b")],
                edges=[PositionedEdge(id="e", source="a", target="b")],
            ),
            start_node_id="a",
        )

        state = editor.update_edge(state, "e", label="user agrees")

        assert state.document().nodes[0].edges[0].condition == "user agrees"

    def test_update_missing_edge(self):
        """Test updating an edge that does not exist."""
        with pytest.raises(EdgeNotFoundError):
            editor.update_edge(make_state(), "nope", condition="x")

    def test_update_edge_to_missing_target(self):
        """Test retargeting to a node that does not exist."""
        state = make_state()
        with pytest.raises(NodeNotFoundError):
            editor.update_edge(state, state.graph.edges[0].id, target="ghost")

    def test_delete_edge(self):
        """Test deleting an edge and its selection."""
        state = make_state()
        edge_id = state.graph.edges[0].id
        state = editor.select(state, edge_id=edge_id)

        state = editor.delete_edge(state, edge_id)

        assert state.graph.get_edge(edge_id) is None
        assert state.selected_edge_id is None
        assert state.document().nodes[0].edges == []

    def test_delete_missing_edge(self):
        """Test deleting an edge that does not exist."""
        with pytest.raises(EdgeNotFoundError):
            editor.delete_edge(make_state(), "nope")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
