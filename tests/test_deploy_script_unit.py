"""
Unit tests for the deployment script
Tests ordering, pre-flight checks and the cdk command line
"""
import pytest
from unittest.mock import patch, MagicMock

from deploy import StackDeployer
from stack_wiring.errors import UnresolvedImport


def _registry(exports=None):
    exports = exports or {}
    registry = MagicMock()

    def resolve(key, consumer=None):
        if key not in exports:
            raise UnresolvedImport(key, consumer)
        return exports[key]

    registry.resolve.side_effect = resolve
    return registry


def _completed(returncode=0):
    result = MagicMock()
    result.returncode = returncode
    result.stderr = "boom" if returncode else ""
    return result


@pytest.mark.unit
class TestStackDeployer:
    """Test ordered deployment"""

    def test_plan_order(self):
        """Test all units are planned producers first"""
        deployer = StackDeployer("example", "dev", region="us-east-1", registry=_registry())

        assert [unit.stack_id for unit in deployer.plan()] == [
            "example-dev-ddb-stack",
            "example-dev-cognito-stack",
            "example-dev-appsync-stack",
        ]

    def test_plan_unknown_unit(self):
        """Test unknown unit names are rejected"""
        deployer = StackDeployer("example", "dev", region="us-east-1", registry=_registry())

        with pytest.raises(ValueError):
            deployer.plan(["frontend"])

    @patch("deploy.subprocess.run")
    def test_deploy_all_runs_cdk_in_order(self, mock_run):
        """Test every stack is deployed once, in order"""
        mock_run.return_value = _completed()
        registry = _registry()
        deployer = StackDeployer("example", "dev", region="us-east-1", registry=registry)

        assert deployer.deploy_all()

        deployed = [call.args[0][2] for call in mock_run.call_args_list]
        assert deployed == [
            "example-dev-ddb-stack",
            "example-dev-cognito-stack",
            "example-dev-appsync-stack",
        ]
        # Imports are produced within this run, so nothing is looked up
        registry.resolve.assert_not_called()
        assert registry.refresh.call_count == 3

    @patch("deploy.subprocess.run")
    def test_preflight_blocks_consumer_without_exports(self, mock_run):
        """Test deploying the API alone fails when its imports are not live"""
        deployer = StackDeployer("example", "dev", region="us-east-1", registry=_registry())

        assert not deployer.deploy_all(only=["appsync"])
        mock_run.assert_not_called()

    @patch("deploy.subprocess.run")
    def test_preflight_passes_with_live_exports(self, mock_run):
        """Test deploying the API alone once its producers are live"""
        mock_run.return_value = _completed()
        registry = _registry({
            "example-dev-ddb-arn": "arn:aws:dynamodb:us-east-1:123456789012:table/example-dev-ddb-table",
            "example-dev-cognito-user-pool-id": "us-east-1_abc",
        })
        deployer = StackDeployer("example", "dev", region="us-east-1", registry=registry)

        assert deployer.deploy_all(only=["appsync"])
        assert mock_run.call_count == 1

    @patch("deploy.subprocess.run")
    def test_stops_on_first_failure(self, mock_run):
        """Test a failed stack aborts the rest"""
        mock_run.return_value = _completed(returncode=1)
        deployer = StackDeployer("example", "dev", region="us-east-1", registry=_registry())

        assert not deployer.deploy_all()
        assert mock_run.call_count == 1

    @patch("deploy.subprocess.run")
    def test_dry_run(self, mock_run):
        """Test dry runs deploy nothing"""
        deployer = StackDeployer("example", "dev", region="us-east-1", registry=_registry())

        assert deployer.deploy_all(dry_run=True, skip_preflight=True)
        mock_run.assert_not_called()

    def test_cdk_command_passes_namespace(self):
        """Test context flags carry the namespace"""
        deployer = StackDeployer("shop", "prod", region="eu-west-1", account="123456789012",
                                 registry=_registry())

        cmd = deployer._cdk_command("shop-prod-ddb-stack")

        assert cmd[:3] == ["cdk", "deploy", "shop-prod-ddb-stack"]
        assert "application=shop" in cmd
        assert "environment=prod" in cmd
        assert "region=eu-west-1" in cmd
        assert "account=123456789012" in cmd
