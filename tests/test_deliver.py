"""
Tests for the deliver use case — end-to-end over a project directory.
"""

from pathlib import Path

from bridgecd.adapters.base import BridgeError
from bridgecd.adapters.mock import MockBridgeFactory
from bridgecd.core.models import Diagnostics
from bridgecd.core.use_cases.deliver import (
    CONFIGURATION_FAILURE,
    DELIVERY_FAILURE,
    NO_BRIDGE,
    prepare_delivery,
    run_delivery,
)


class TestPrepareDelivery:
    def test_compiles_filtered_domain(self, configuration):
        diagnostics = Diagnostics()
        task_lists = prepare_delivery(configuration, "prod", diagnostics)
        assert [t.node.name for t in task_lists] == ["p1"]
        assert len(diagnostics) == 0

    def test_errors_prevent_compilation(self, configuration):
        diagnostics = Diagnostics()
        task_lists = prepare_delivery(configuration, "prod", diagnostics, nodes=["ghost"])
        assert task_lists == []
        assert diagnostics.has_errors


class TestRunDelivery:
    def test_success(self, project_dir: Path):
        factory = MockBridgeFactory()
        result = run_delivery("prod", project_dir, bridge_factory=factory)

        assert result.ok
        assert result.error_kind is None
        assert result.report.all_ok
        assert {c.node for c in factory.call_log} == {"prod-1", "prod-2"}

    def test_warnings_cover_every_domain(self, project_dir: Path):
        result = run_delivery("prod", project_dir, bridge_factory=MockBridgeFactory())

        assert result.ok
        assert [(d.domain, d.service) for d in result.diagnostics.warnings] == [
            ("local", "CollectorService"),
        ]
        assert result.diagnostics.warnings[0].message.startswith(
            "domain 'local', service 'CollectorService': 'settings': choosing"
        )

    def test_resolved_values_reach_the_bridge(self, project_dir: Path):
        factory = MockBridgeFactory()
        run_delivery("prod", project_dir, services=["PortalService"], bridge_factory=factory)

        ports = {
            c.node: c.args["settings"]["port"]
            for c in factory.call_log
            if c.operation == "settings"
        }
        assert ports == {"prod-1": 3000, "prod-2": 3001}

        deploy = next(c for c in factory.call_log if c.operation == "deploy")
        assert deploy.args["repository"].endswith("PortalService.zip")
        assert deploy.args["options"]["npm_install"] is True

    def test_local_warning_is_reported_but_not_fatal(self, project_dir: Path):
        factory = MockBridgeFactory()
        result = run_delivery("local", project_dir, bridge_factory=factory)

        assert result.ok
        assert len(result.diagnostics.warnings) == 1
        settings = next(
            c for c in factory.call_log
            if c.operation == "settings" and c.service == "CollectorService"
        )
        assert settings.args["settings"] == {"configFile": "default", "logLevel": "info"}

    def test_dry_run_without_bridge(self, project_dir: Path):
        result = run_delivery("prod", project_dir, dry_run=True)

        assert result.ok
        assert result.report.dry_run
        assert result.report.succeeded == 0
        assert result.report.skipped == result.report.total > 0

    def test_configuration_errors_skip_execution(self, project_dir: Path):
        factory = MockBridgeFactory()
        result = run_delivery("staging", project_dir, bridge_factory=factory)

        assert result.error == CONFIGURATION_FAILURE
        assert result.error_kind == "configuration"
        assert result.report is None
        assert factory.call_count == 0

    def test_missing_config(self, tmp_path: Path):
        result = run_delivery("prod", tmp_path, bridge_factory=MockBridgeFactory())
        assert result.error_kind == "configuration"
        assert "Config file not found" in result.error

    def test_real_run_needs_a_bridge(self, project_dir: Path):
        result = run_delivery("prod", project_dir)
        assert result.error == NO_BRIDGE
        assert result.error_kind == "configuration"
        assert result.report is None

    def test_bridge_problem_reported_after_configuration(self, project_dir: Path):
        result = run_delivery("prod", project_dir, bridge_problem="Unknown bridge 'x'")
        assert result.error == "Unknown bridge 'x'"
        assert result.error_kind == "configuration"

        result = run_delivery("staging", project_dir, bridge_problem="Unknown bridge 'x'")
        assert result.error == CONFIGURATION_FAILURE

    def test_bridge_problem_fails_dry_run_too(self, project_dir: Path):
        result = run_delivery(
            "prod", project_dir, dry_run=True, bridge_problem="Unknown bridge 'x'"
        )
        assert result.error_kind == "configuration"
        assert result.report is None

    def test_unreachable_node_does_not_stop_the_run(self, project_dir: Path):
        mock = MockBridgeFactory()

        def factory(connection):
            if connection.node == "prod-1":
                raise BridgeError("connect", "host unreachable")
            return mock(connection)

        result = run_delivery("prod", project_dir, bridge_factory=factory)

        assert result.error_kind == "delivery"
        assert [n.node for n in result.report.nodes] == ["prod-1", "prod-2"]
        assert "host unreachable" in str(result.report.nodes[0].aborted)
        assert len(mock.calls_for("prod-2")) == 7

    def test_delivery_failure(self, project_dir: Path):
        factory = MockBridgeFactory()
        factory.set_failure("start", "CollectorService")
        result = run_delivery("prod", project_dir, bridge_factory=factory)

        assert result.error == DELIVERY_FAILURE
        assert result.error_kind == "delivery"
        assert result.report.status == "partial"
        # The failure of one service does not stop the other
        portal = [
            c.operation for c in factory.calls_for("prod-1") if c.service == "PortalService"
        ]
        assert portal == ["deploy", "settings", "start"]

    def test_break_on_error_stops_at_first_node(self, project_dir: Path):
        factory = MockBridgeFactory()
        factory.set_failure("deploy", "CollectorService")
        result = run_delivery(
            "prod", project_dir, bridge_factory=factory, break_on_error=True
        )

        assert result.error_kind == "delivery"
        assert result.report.skipped_nodes == ["prod-2"]
        assert factory.calls_for("prod-2") == []

    def test_to_dict(self, project_dir: Path):
        data = run_delivery("local", project_dir, dry_run=True).to_dict()
        assert data["domain"] == "local"
        assert data["nodes_planned"] == 1
        assert data["tasks_planned"] == 7
        assert data["diagnostics"][0]["level"] == "warn"
        assert "error" not in data
