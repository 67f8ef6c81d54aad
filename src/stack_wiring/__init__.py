"""
Cross-stack wiring for the example Cognito / DynamoDB / AppSync stacks
"""
from .errors import (
    WiringError,
    DuplicateExportKey,
    UnresolvedImport,
    InvalidTrustCondition,
    NamespaceCollision,
    DependencyCycle,
    InvalidStateTransition,
    ExportInUse,
    MissingExportOutput,
)
from .naming import Namespace, resolve_namespace
from .export_registry import ExportRegistry, CloudFormationExportRegistry
from .trust_policy import FederatedTrustPolicyBuilder, TrustPolicy
from .deployment_graph import DeploymentGraph, Unit, UnitDeployment, UnitState
from .units import declare_units

__version__ = "1.0.0"
