"""
Tests for the tree filter — domain selection, ANDed filters, unknown names.
"""

import pytest

from bridgecd.core.engine.tree_builder import build_delivery_tree
from bridgecd.core.engine.tree_filter import filter_delivery_tree
from bridgecd.core.models import Diagnostics


@pytest.fixture
def tree(configuration):
    return build_delivery_tree(
        configuration.domains,
        configuration.nodes,
        configuration.solutions,
        configuration.services,
        Diagnostics(),
    )


def _services(tree) -> set[tuple[str, str]]:
    return {
        (node.name, service.name)
        for _, node in tree.iter_nodes()
        for _, service in node.iter_services()
    }


class TestDomainSelection:
    def test_only_requested_domain(self, tree, configuration):
        diagnostics = Diagnostics()
        result = filter_delivery_tree("prod", tree, configuration, diagnostics)
        assert list(result.domains) == ["prod"]
        assert _services(result) == {("p1", "Cart"), ("p1", "Catalog"), ("p1", "Invoices")}
        assert len(diagnostics) == 0

    def test_input_tree_untouched(self, tree, configuration):
        before = tree.model_dump()
        filter_delivery_tree("test", tree, configuration, Diagnostics(), services=["Cart"])
        assert tree.model_dump() == before

    def test_unknown_domain(self, tree, configuration):
        diagnostics = Diagnostics()
        result = filter_delivery_tree("staging", tree, configuration, diagnostics)
        assert result.is_empty
        assert [d.message for d in diagnostics.errors] == ["Unknown domain 'staging'"]


class TestFilters:
    def test_node_filter(self, tree, configuration):
        result = filter_delivery_tree("test", tree, configuration, Diagnostics(), nodes=["t2"])
        assert {n for n, _ in _services(result)} == {"t2"}

    def test_label_filter(self, tree, configuration):
        result = filter_delivery_tree("test", tree, configuration, Diagnostics(), labels=["a"])
        assert {n for n, _ in _services(result)} == {"t1"}

    def test_label_filter_any_of(self, tree, configuration):
        result = filter_delivery_tree(
            "test", tree, configuration, Diagnostics(), labels=["a", "b"]
        )
        assert {n for n, _ in _services(result)} == {"t1", "t2"}

    def test_solution_filter(self, tree, configuration):
        result = filter_delivery_tree(
            "test", tree, configuration, Diagnostics(), solutions=["Billing"]
        )
        assert _services(result) == {("t1", "Invoices"), ("t2", "Invoices")}

    def test_filters_are_anded(self, tree, configuration):
        result = filter_delivery_tree(
            "test",
            tree,
            configuration,
            Diagnostics(),
            nodes=["t1", "t2"],
            labels=["b"],
            services=["Cart", "Invoices"],
        )
        assert _services(result) == {("t2", "Cart"), ("t2", "Invoices")}

    def test_empty_branches_dropped(self, tree, configuration):
        result = filter_delivery_tree(
            "test", tree, configuration, Diagnostics(), services=["Catalog"]
        )
        for _, node in result.iter_nodes():
            assert list(node.solutions) == ["Shop"]

    def test_idempotent(self, tree, configuration):
        filters = {"labels": ["a"], "solutions": ["Shop"]}
        once = filter_delivery_tree("test", tree, configuration, Diagnostics(), **filters)
        twice = filter_delivery_tree("test", once, configuration, Diagnostics(), **filters)
        assert once == twice

    def test_nothing_matches_warns(self, tree, configuration):
        diagnostics = Diagnostics()
        result = filter_delivery_tree(
            "prod", tree, configuration, diagnostics, labels=["a"]
        )
        assert result.service_count == 0
        assert not diagnostics.has_errors
        assert diagnostics.warnings[0].message == (
            "Nothing to deliver in domain 'prod' for the given filters"
        )

    def test_unknown_names_are_errors(self, tree, configuration):
        diagnostics = Diagnostics()
        filter_delivery_tree(
            "test",
            tree,
            configuration,
            diagnostics,
            nodes=["t9"],
            solutions=["Nope"],
            services=["Ghost"],
        )
        assert [d.message for d in diagnostics.errors] == [
            "Unknown node 't9' requested",
            "Unknown solution 'Nope' requested",
            "Unknown service 'Ghost' requested",
        ]
