"""Tests for siteforge.graph: declaration and dependency resolution."""

from __future__ import annotations

import itertools

import pytest

from siteforge.errors import CycleError, DuplicateIdError, UnknownReferenceError
from siteforge.graph import ResourceGraph, build
from siteforge.models import ResourceKind, ResourceNode


def _node(node_id: str, kind: ResourceKind = ResourceKind.BUCKET, *deps: str) -> ResourceNode:
    return ResourceNode(id=node_id, kind=kind, properties={}, depends_on=tuple(deps))


def _assert_topological(order: list[ResourceNode]) -> None:
    position = {node.id: i for i, node in enumerate(order)}
    for node in order:
        for dep_id in node.depends_on:
            assert position[dep_id] < position[node.id], f"{dep_id} must precede {node.id}"


# =============================================================================
# Declaration
# =============================================================================


class TestDeclare:
    def test_declare_returns_frozen_node(self) -> None:
        graph = ResourceGraph()
        node = graph.declare(ResourceKind.BUCKET, "bucket", {"bucket_name": "b"})

        assert node.kind is ResourceKind.BUCKET
        assert graph.get("bucket") is node
        assert "bucket" in graph
        with pytest.raises(AttributeError):
            node.id = "other"  # type: ignore[misc]

    def test_kind_accepts_string_value(self) -> None:
        node = ResourceGraph().declare("Distribution", "cdn")
        assert node.kind is ResourceKind.DISTRIBUTION

    def test_duplicate_id_leaves_graph_unchanged(self) -> None:
        graph = ResourceGraph()
        original = graph.declare(ResourceKind.BUCKET, "bucket", {"bucket_name": "first"})

        with pytest.raises(DuplicateIdError) as exc_info:
            graph.declare(ResourceKind.HOSTED_ZONE, "bucket", {"zone_name": "second"})

        assert exc_info.value.node_id == "bucket"
        assert len(graph) == 1
        assert graph.get("bucket") is original
        assert graph.get("bucket").properties == {"bucket_name": "first"}

    def test_forward_references_are_allowed(self) -> None:
        graph = ResourceGraph()
        graph.declare(ResourceKind.A_RECORD, "record", depends_on=["cdn"])
        graph.declare(ResourceKind.DISTRIBUTION, "cdn")

        assert graph.build().ids() == ["cdn", "record"]

    def test_properties_are_copied(self) -> None:
        props = {"aliases": ["a.example.com"]}
        node = ResourceGraph().declare(ResourceKind.DISTRIBUTION, "cdn", props)
        props["aliases"].append("b.example.com")

        assert node.properties == {"aliases": ("a.example.com",)}

    def test_node_properties_are_read_only(self) -> None:
        graph = ResourceGraph()
        node = graph.declare(ResourceKind.DISTRIBUTION, "cdn", {
            "bucket_name": "a",
            "viewer_certificate": {"aliases": ["a.example.com"]},
        })

        with pytest.raises(TypeError):
            node.properties["bucket_name"] = "changed"  # type: ignore[index]
        with pytest.raises(TypeError):
            node.properties["viewer_certificate"]["aliases"] = ()  # type: ignore[index]
        with pytest.raises(AttributeError):
            node.properties["viewer_certificate"]["aliases"].append("b.example.com")  # type: ignore[union-attr]

        assert graph.build().get("cdn").properties["bucket_name"] == "a"

    def test_directly_constructed_nodes_are_frozen(self) -> None:
        node = ResourceNode(id="b", kind=ResourceKind.BUCKET, properties={"tags": ["x"]}, depends_on=["a"])

        assert node.properties["tags"] == ("x",)
        assert node.depends_on == ("a",)
        with pytest.raises(TypeError):
            node.properties["tags"] = ()  # type: ignore[index]

    def test_duplicate_dependencies_are_collapsed(self) -> None:
        node = ResourceGraph().declare(ResourceKind.A_RECORD, "r", depends_on=["a", "b", "a"])
        assert node.depends_on == ("a", "b")


# =============================================================================
# Resolution
# =============================================================================


class TestBuildOrdering:
    def test_independent_nodes_keep_declaration_order(self) -> None:
        nodes = [_node("c"), _node("a"), _node("b")]
        assert build(nodes).ids() == ["c", "a", "b"]

    def test_dependency_moves_ahead_only_when_required(self) -> None:
        nodes = [_node("x"), _node("y", ResourceKind.BUCKET, "z"), _node("z"), _node("w")]
        assert build(nodes).ids() == ["x", "z", "y", "w"]

    @pytest.mark.parametrize(
        "permutation",
        list(itertools.permutations(["bucket", "identity", "distribution", "record"])),
    )
    def test_cdn_chain_in_any_declaration_order(self, permutation: tuple[str, ...]) -> None:
        declared = {
            "bucket": _node("bucket", ResourceKind.BUCKET),
            "identity": _node("identity", ResourceKind.ORIGIN_IDENTITY),
            "distribution": _node("distribution", ResourceKind.DISTRIBUTION, "bucket", "identity"),
            "record": _node("record", ResourceKind.A_RECORD, "distribution"),
        }

        ids = build([declared[name] for name in permutation]).ids()

        assert ids.index("bucket") < ids.index("distribution")
        assert ids.index("identity") < ids.index("distribution")
        assert ids.index("distribution") < ids.index("record")

    def test_order_is_a_topological_sort(self) -> None:
        nodes = [
            _node("e", ResourceKind.BUCKET, "d", "b"),
            _node("d", ResourceKind.BUCKET, "c"),
            _node("c", ResourceKind.BUCKET, "a"),
            _node("b", ResourceKind.BUCKET, "a"),
            _node("a"),
        ]
        resolved = build(nodes)
        _assert_topological(list(resolved))
        assert len(resolved) == 5

    def test_build_is_deterministic(self) -> None:
        nodes = [_node("r", ResourceKind.A_RECORD, "d"), _node("d"), _node("z")]
        assert build(nodes).ids() == build(nodes).ids()

    def test_resolved_graph_lookup(self) -> None:
        graph = ResourceGraph()
        graph.declare(ResourceKind.BUCKET, "bucket")
        graph.declare(ResourceKind.DISTRIBUTION, "cdn", depends_on=["bucket"])
        graph.declare(ResourceKind.DEPLOYMENT, "deploy", depends_on=["bucket", "cdn"])
        resolved = graph.build()

        assert resolved.position("cdn") == 1
        assert resolved.dependents("bucket") == ["cdn", "deploy"]
        assert resolved.get("deploy").kind is ResourceKind.DEPLOYMENT
        assert resolved.get("missing") is None


class TestBuildErrors:
    def test_unknown_reference_names_both_ids(self) -> None:
        nodes = [_node("bucket"), _node("cdn", ResourceKind.DISTRIBUTION, "bucket", "identity")]

        with pytest.raises(UnknownReferenceError) as exc_info:
            build(nodes)

        assert exc_info.value.missing_id == "identity"
        assert exc_info.value.referencing_id == "cdn"
        assert "identity" in str(exc_info.value) and "cdn" in str(exc_info.value)

    def test_two_node_cycle(self) -> None:
        nodes = [_node("a", ResourceKind.BUCKET, "b"), _node("b", ResourceKind.BUCKET, "a")]

        with pytest.raises(CycleError) as exc_info:
            build(nodes)

        assert exc_info.value.cycle == ["a", "b"]
        assert "a -> b -> a" in str(exc_info.value)

    def test_self_dependency(self) -> None:
        with pytest.raises(CycleError) as exc_info:
            build([_node("a", ResourceKind.BUCKET, "a")])
        assert exc_info.value.cycle == ["a"]

    def test_cycle_excludes_nodes_only_downstream(self) -> None:
        nodes = [
            _node("tail", ResourceKind.BUCKET, "a"),
            _node("ok"),
            _node("a", ResourceKind.BUCKET, "b"),
            _node("b", ResourceKind.BUCKET, "c"),
            _node("c", ResourceKind.BUCKET, "a"),
        ]

        with pytest.raises(CycleError) as exc_info:
            build(nodes)

        assert exc_info.value.cycle == ["a", "b", "c"]

    def test_duplicate_ids_in_sequence(self) -> None:
        with pytest.raises(DuplicateIdError):
            build([_node("a"), _node("a")])
