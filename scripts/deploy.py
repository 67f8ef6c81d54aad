#!/usr/bin/env python3
"""
Deployment script for the example DynamoDB / Cognito / AppSync stacks
Deploys stacks in dependency order and pre-flights cross-stack imports
"""
import argparse
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from stack_wiring.config import get_config
from stack_wiring.errors import WiringError, UnresolvedImport
from stack_wiring.export_registry import CloudFormationExportRegistry
from stack_wiring.naming import resolve_namespace
from stack_wiring.units import declare_units

INFRASTRUCTURE_DIR = Path(__file__).resolve().parent.parent / "infrastructure"


class StackDeployer:
    """Handles ordered deployment of the stacks of one namespace"""

    def __init__(
        self,
        application: Optional[str] = None,
        environment: Optional[str] = None,
        region: Optional[str] = None,
        account: Optional[str] = None,
        registry=None
    ):
        config = get_config()
        self.namespace = resolve_namespace(
            application if application is not None else config.application,
            environment if environment is not None else config.environment
        )
        self.region = region or config.region
        self.account = account or config.account
        self.graph = declare_units(self.namespace)
        self._registry = registry

    @property
    def registry(self):
        if self._registry is None:
            self._registry = CloudFormationExportRegistry(self.region)
        return self._registry

    def plan(self, only: Optional[List[str]] = None) -> List:
        """Units to deploy, in order; units outside ``only`` are assumed live"""
        order = self.graph.validate()
        if not only:
            return order

        unknown = set(only) - set(self.graph.units)
        if unknown:
            raise ValueError(f"Unknown units: {', '.join(sorted(unknown))}")
        return [unit for unit in order if unit.name in only]

    def deploy_all(self, only: Optional[List[str]] = None, skip_preflight: bool = False,
                   dry_run: bool = False) -> bool:
        """Deploy all stacks in the correct order"""
        print(f"🚀 Deploying {self.namespace.prefix} to {self.region}...")

        try:
            units = self.plan(only)
        except (WiringError, ValueError) as e:
            print(f"❌ Invalid stack wiring: {e}")
            return False

        planned = {unit.name for unit in units}
        for unit in units:
            if not skip_preflight and not self._preflight(unit, planned):
                return False

            if dry_run:
                print(f"📝 Would deploy {unit.stack_id}")
                continue

            if not self._deploy_stack(unit.stack_id):
                print(f"❌ Failed to deploy {unit.stack_id}")
                return False

            if not skip_preflight:
                # Newly published exports must be visible to the next consumer
                self.registry.refresh()

        print(f"✅ Deployment of {self.namespace.prefix} completed successfully!")
        return True

    def _preflight(self, unit, planned) -> bool:
        """Check imports produced outside this run are already exported"""
        producers = self.graph.producers()

        for key in unit.imports:
            producer = producers.get(key)
            if producer in planned:
                continue
            try:
                self.registry.resolve(key, consumer=unit.name)
            except UnresolvedImport as e:
                print(f"❌ Pre-flight failed for {unit.stack_id}: {e}")
                return False

        print(f"✅ Pre-flight passed for {unit.stack_id}")
        return True

    def _cdk_command(self, stack_id: str) -> List[str]:
        cmd = [
            "cdk", "deploy", stack_id,
            "--exclusively",
            "--require-approval", "never",
            "--context", f"application={self.namespace.application}",
            "--context", f"environment={self.namespace.environment}",
            "--context", f"region={self.region}",
        ]
        if self.account:
            cmd.extend(["--context", f"account={self.account}"])
        return cmd

    def _deploy_stack(self, stack_id: str) -> bool:
        """Deploy a single stack"""
        print(f"📦 Deploying {stack_id}...")

        try:
            result = subprocess.run(
                self._cdk_command(stack_id),
                capture_output=True,
                text=True,
                cwd=str(INFRASTRUCTURE_DIR)
            )

            if result.returncode != 0:
                print(f"❌ Stack {stack_id} deployment failed:")
                print(result.stderr)
                return False

            print(f"✅ Stack {stack_id} deployed successfully!")
            return True

        except OSError as e:
            print(f"❌ Error deploying stack {stack_id}: {str(e)}")
            return False


def main():
    """Main deployment function"""
    parser = argparse.ArgumentParser(description="Deploy the DynamoDB / Cognito / AppSync stacks")
    parser.add_argument("--application", help="Application name (default: example)")
    parser.add_argument("--environment", help="Environment name (default: dev)")
    parser.add_argument("--region", help="AWS region")
    parser.add_argument("--account", help="AWS account ID")
    parser.add_argument("--only", nargs="+", help="Deploy only these units (ddb, cognito, appsync)")
    parser.add_argument("--skip-preflight", action="store_true", help="Skip the export pre-flight check")
    parser.add_argument("--dry-run", action="store_true", help="Print the deploy order without deploying")

    args = parser.parse_args()

    deployer = StackDeployer(
        application=args.application,
        environment=args.environment,
        region=args.region,
        account=args.account
    )

    success = deployer.deploy_all(
        only=args.only,
        skip_preflight=args.skip_preflight,
        dry_run=args.dry_run
    )
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
