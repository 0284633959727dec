"""
Tests for the task list compiler and deployment option mapping.
"""

import pytest

from bridgecd.core.engine.compiler import compile_service_tasks, compile_task_lists
from bridgecd.core.engine.options import (
    DEFAULT_DEPLOYMENT_OPTIONS,
    normalize_deployment_options,
    unknown_options,
)
from bridgecd.core.engine.tree_builder import build_delivery_tree
from bridgecd.core.engine.tree_filter import filter_delivery_tree
from bridgecd.core.models import Diagnostics, ResolvedService

# ── Service Sequences ────────────────────────────────────────────────


class TestServiceTasks:
    def test_full_sequence_order(self):
        service = ResolvedService(
            name="A",
            kind="xUML",
            repository="/p/repositories/A.rep",
            settings={"x": 1},
            preferences={"automaticStartup": True},
            deployment_options={"overwrite": True},
        )
        tasks = compile_service_tasks(service)
        assert [t.type for t in tasks] == ["deploy", "settings", "preferences", "start"]
        assert all(t.service == "A" and t.kind == "xUML" for t in tasks)

    def test_deploy_params(self):
        service = ResolvedService(
            name="A",
            kind="node",
            repository="/p/repositories/A.zip",
            deployment_options={"npm_install": True},
        )
        deploy = compile_service_tasks(service)[0]
        assert deploy.params["repository"] == "/p/repositories/A.zip"
        assert deploy.params["options"]["npm_install"] is True
        assert deploy.params["options"]["overwrite"] is False

    def test_empty_maps_skip_their_tasks(self):
        service = ResolvedService(name="A", kind="java", repository="A.jar")
        assert [t.type for t in compile_service_tasks(service)] == ["deploy", "start"]

    def test_without_repository_only_configures_and_starts(self):
        service = ResolvedService(name="A", kind="xUML", settings={"x": 1})
        assert [t.type for t in compile_service_tasks(service)] == ["settings", "start"]

    def test_settings_params(self):
        service = ResolvedService(name="A", kind="xUML", settings={"x": 1, "y": "z"})
        task = compile_service_tasks(service)[0]
        assert task.params == {"settings": {"x": 1, "y": "z"}}


# ── Task Lists ───────────────────────────────────────────────────────


class TestTaskLists:
    def _filtered(self, configuration, **filters):
        diagnostics = Diagnostics()
        tree = build_delivery_tree(
            configuration.domains,
            configuration.nodes,
            configuration.solutions,
            configuration.services,
            diagnostics,
        )
        return filter_delivery_tree("test", tree, configuration, diagnostics, **filters)

    def test_one_list_per_node(self, configuration):
        task_lists = compile_task_lists(self._filtered(configuration), configuration.node_map)
        assert [t.node.name for t in task_lists] == ["t1", "t2"]
        assert all(t.domain == "test" for t in task_lists)
        assert task_lists[0].services == ["Cart", "Catalog", "Invoices"]

    def test_task_counts(self, configuration):
        task_lists = compile_task_lists(self._filtered(configuration), configuration.node_map)
        # Cart: deploy, settings, preferences, start; Catalog: deploy, start;
        # Invoices: deploy, settings, start
        assert task_lists[0].total_tasks == 9

    def test_node_connection_details_carried(self, configuration):
        task_lists = compile_task_lists(
            self._filtered(configuration, nodes=["t2"]), configuration.node_map
        )
        assert len(task_lists) == 1
        assert task_lists[0].node.labels == frozenset({"b"})
        assert task_lists[0].node.user == "u"

    def test_empty_tree(self, configuration):
        tree = self._filtered(configuration, labels=["nobody"])
        assert compile_task_lists(tree, configuration.node_map) == []

    def test_unknown_node_raises(self, configuration):
        with pytest.raises(KeyError):
            compile_task_lists(self._filtered(configuration), {})


# ── Deployment Options ───────────────────────────────────────────────


class TestDeploymentOptions:
    def test_defaults(self):
        assert normalize_deployment_options({}) == DEFAULT_DEPLOYMENT_OPTIONS

    def test_settings_maps_to_overwrite_settings(self):
        assert normalize_deployment_options({"settings": True})["overwrite_settings"] is True

    def test_run_scripts_implies_npm_install(self):
        options = normalize_deployment_options({
            "npm_install_run_scripts": True,
            "npm_install": False,
        })
        assert options["npm_install"] is True
        assert options["npm_install_run_scripts"] is True

    @pytest.mark.parametrize("raw, expected", [
        ("yes", True),
        ("true", True),
        ("off", False),
        (0, False),
        (1, True),
    ])
    def test_flag_values(self, raw, expected):
        assert normalize_deployment_options({"startup": raw})["startup"] is expected

    def test_instance_name(self):
        assert normalize_deployment_options({"instance_name": "B"})["instance_name"] == "B"
        assert "instance_name" not in normalize_deployment_options({})

    def test_unknown_options(self):
        assert unknown_options(["startup", "explode", "settings", "fly"]) == ["explode", "fly"]
