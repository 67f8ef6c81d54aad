"""
Unit graph and deployment ordering

Units declare resource names, exports and imports. Producer -> consumer
edges are inferred from matching export/import keys, validated, and turned
into a deterministic topological deploy order. ``UnitDeployment`` walks the
per-unit lifecycle against an ``ExportRegistry``.
"""
import logging
from collections import OrderedDict
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Set, Tuple

from .errors import (
    DependencyCycle,
    DuplicateExportKey,
    ExportInUse,
    InvalidStateTransition,
    MissingExportOutput,
    NamespaceCollision,
    UnresolvedImport,
)
from .export_registry import ExportRegistry
from .naming import Namespace

logger = logging.getLogger(__name__)


class UnitState(Enum):
    PLANNED = "planned"
    PROVISIONING = "provisioning"
    LIVE = "live"
    UPDATING = "updating"
    DESTROYING = "destroying"
    DESTROYED = "destroyed"


TRANSITIONS = {
    UnitState.PLANNED: {UnitState.PROVISIONING},
    # Failed provisioning rolls back to PLANNED
    UnitState.PROVISIONING: {UnitState.LIVE, UnitState.PLANNED},
    UnitState.LIVE: {UnitState.UPDATING, UnitState.DESTROYING},
    UnitState.UPDATING: {UnitState.LIVE},
    UnitState.DESTROYING: {UnitState.DESTROYED},
    UnitState.DESTROYED: {UnitState.PROVISIONING},
}


class Unit:
    """One independently deployable collection of resources"""

    def __init__(self, name: str, namespace: Namespace, stack_id: Optional[str] = None):
        self.name = name
        self.namespace = namespace
        self.stack_id = stack_id or namespace.stack_id(name)
        self.resources: List[str] = []
        self.exports: "OrderedDict[str, str]" = OrderedDict()
        self.imports: "OrderedDict[str, str]" = OrderedDict()
        self.depends_on: List[str] = []

    def declare_resource(self, suffix: str) -> str:
        """Declare a physical resource name and return it"""
        name = self.namespace.resource_name(suffix)
        if name in self.resources:
            raise NamespaceCollision(name, self.name, self.name)
        self.resources.append(name)
        return name

    def resource_name(self, suffix: str) -> str:
        """Name of a declared resource"""
        name = self.namespace.resource_name(suffix)
        if name not in self.resources:
            raise ValueError(f"Unit {self.name} does not declare resource {suffix}")
        return name

    def export(self, suffix: str) -> str:
        """Declare an export; returns the export key"""
        key = self.namespace.export_key(suffix)
        if key in self.exports:
            raise DuplicateExportKey.between_units(key, self.name, self.name)
        self.exports[key] = suffix
        return key

    def import_value(self, suffix: str) -> str:
        """Declare an import; returns the export key it reads"""
        key = self.namespace.export_key(suffix)
        self.imports[key] = suffix
        return key

    def export_name(self, suffix: str) -> str:
        """Key of a declared export"""
        key = self.namespace.export_key(suffix)
        if key not in self.exports:
            raise ValueError(f"Unit {self.name} does not export {suffix}")
        return key

    def import_name(self, suffix: str) -> str:
        """Key of a declared import"""
        key = self.namespace.export_key(suffix)
        if key not in self.imports:
            raise ValueError(f"Unit {self.name} does not import {suffix}")
        return key

    def add_dependency(self, unit: "Unit") -> None:
        if unit.name not in self.depends_on:
            self.depends_on.append(unit.name)

    def __repr__(self):
        return f"Unit({self.name!r}, stack_id={self.stack_id!r})"


class DeploymentGraph:
    """Validated producer -> consumer graph between units"""

    def __init__(self):
        self.units: "OrderedDict[str, Unit]" = OrderedDict()

    def add_unit(self, name: str, namespace: Namespace, stack_id: Optional[str] = None) -> Unit:
        if name in self.units:
            raise ValueError(f"Unit {name} already declared")
        unit = Unit(name, namespace, stack_id)
        self.units[name] = unit
        return unit

    def __getitem__(self, name: str) -> Unit:
        return self.units[name]

    def producers(self) -> Dict[str, str]:
        """Map every export key to the unit exporting it"""
        producers: Dict[str, str] = {}
        for unit in self.units.values():
            for key in unit.exports:
                if key in producers and producers[key] != unit.name:
                    raise DuplicateExportKey.between_units(key, producers[key], unit.name)
                producers[key] = unit.name
        return producers

    def edges(self, external_exports: Optional[Set[str]] = None) -> List[Tuple[str, str]]:
        """
        Return (producer, consumer) pairs

        Imports satisfied by ``external_exports`` (already live in the account)
        create no edge; imports satisfied by nobody raise ``UnresolvedImport``.
        """
        external_exports = external_exports or set()
        producers = self.producers()
        edges: List[Tuple[str, str]] = []

        for unit in self.units.values():
            for dependency in unit.depends_on:
                if dependency not in self.units:
                    raise UnresolvedImport(dependency, unit.name)
                edge = (dependency, unit.name)
                if edge not in edges:
                    edges.append(edge)

            for key in unit.imports:
                producer = producers.get(key)
                if producer is None:
                    if key in external_exports:
                        continue
                    raise UnresolvedImport(key, unit.name)
                if producer == unit.name:
                    raise DependencyCycle([unit.name, unit.name])
                edge = (producer, unit.name)
                if edge not in edges:
                    edges.append(edge)

        return edges

    def check_names(self) -> None:
        """Every physical resource name must be unique across the graph"""
        owners: Dict[str, str] = {}
        for unit in self.units.values():
            for name in unit.resources:
                if name in owners:
                    raise NamespaceCollision(name, owners[name], unit.name)
                owners[name] = unit.name

    def deploy_order(self, external_exports: Optional[Set[str]] = None) -> List[Unit]:
        """Topological order; ties keep declaration order"""
        edges = self.edges(external_exports)
        incoming: Dict[str, Set[str]] = {name: set() for name in self.units}
        outgoing: Dict[str, List[str]] = {name: [] for name in self.units}
        for producer, consumer in edges:
            incoming[consumer].add(producer)
            outgoing[producer].append(consumer)

        ready = [name for name in self.units if not incoming[name]]
        order: List[str] = []
        while ready:
            name = ready.pop(0)
            order.append(name)
            for consumer in outgoing[name]:
                incoming[consumer].discard(name)
                if not incoming[consumer] and consumer not in order and consumer not in ready:
                    ready.append(consumer)
            # Keep declaration order among ready units
            ready.sort(key=list(self.units).index)

        if len(order) != len(self.units):
            raise DependencyCycle([name for name in self.units if name not in order])

        return [self.units[name] for name in order]

    def validate(self, external_exports: Optional[Set[str]] = None) -> List[Unit]:
        """Run every author-time check and return the deploy order"""
        self.check_names()
        order = self.deploy_order(external_exports)
        logger.info(f"Deploy order: {' -> '.join(unit.stack_id for unit in order)}")
        return order

    def consumers_of(self, name: str) -> List[str]:
        """Units importing one of this unit's exports or depending on it"""
        exports = self.units[name].exports
        return [
            unit.name for unit in self.units.values()
            if unit.name != name
            and (name in unit.depends_on or any(key in exports for key in unit.imports))
        ]


class UnitDeployment:
    """
    Orchestrator-side lifecycle of the units in a graph

    ``provision`` resolves a unit's imports, runs the supplied provisioner and
    publishes its exports atomically. The provisioner receives the resolved
    imports and returns the export values keyed by export key.
    """

    def __init__(self, graph: DeploymentGraph, registry: Optional[ExportRegistry] = None):
        self.graph = graph
        self.registry = registry or ExportRegistry()
        self.states: Dict[str, UnitState] = {name: UnitState.PLANNED for name in graph.units}

    def state(self, name: str) -> UnitState:
        return self.states[name]

    def _transition(self, name: str, target: UnitState) -> None:
        current = self.states[name]
        if target not in TRANSITIONS[current]:
            raise InvalidStateTransition(name, current, target)
        self.states[name] = target
        logger.debug(f"Unit {name}: {current.value} -> {target.value}")

    @staticmethod
    def _check_outputs(unit: Unit, outputs: Mapping[str, str]) -> None:
        missing = [key for key in unit.exports if key not in outputs]
        if missing:
            raise MissingExportOutput(unit.name, missing)

    def provision(
        self,
        name: str,
        provisioner: Callable[[Mapping[str, str]], Mapping[str, str]],
    ) -> Dict[str, str]:
        unit = self.graph[name]
        self._transition(name, UnitState.PROVISIONING)

        published: List[str] = []
        try:
            imports = {key: self.registry.resolve(key, consumer=name) for key in unit.imports}
            outputs = provisioner(imports)
            self._check_outputs(unit, outputs)

            for key in unit.exports:
                existed = self.registry.exists(key)
                self.registry.publish(key, outputs[key], owner=name)
                if not existed:
                    published.append(key)
        except Exception:
            logger.error(f"Provisioning {name} failed, rolling back {len(published)} export(s)")
            for key in published:
                self.registry.withdraw(key)
            self._transition(name, UnitState.PLANNED)
            raise

        self._transition(name, UnitState.LIVE)
        return {key: outputs[key] for key in unit.exports}

    def update(
        self,
        name: str,
        provisioner: Callable[[Mapping[str, str]], Mapping[str, str]],
    ) -> Dict[str, str]:
        """Re-run a live unit; exports must keep their values"""
        unit = self.graph[name]
        self._transition(name, UnitState.UPDATING)
        try:
            imports = {key: self.registry.resolve(key, consumer=name) for key in unit.imports}
            outputs = provisioner(imports)
            self._check_outputs(unit, outputs)
            for key in unit.exports:
                self.registry.publish(key, outputs[key], owner=name)
        finally:
            # CloudFormation rolls a failed update back to the previous live state
            self._transition(name, UnitState.LIVE)
        return {key: outputs[key] for key in unit.exports}

    def destroy(self, name: str) -> None:
        unit = self.graph[name]
        live_consumers = [
            consumer for consumer in self.graph.consumers_of(name)
            if self.states[consumer] in (UnitState.LIVE, UnitState.UPDATING)
        ]
        for key in unit.exports:
            users = [c for c in live_consumers if key in self.graph[c].imports]
            if users:
                raise ExportInUse(key, users)

        self._transition(name, UnitState.DESTROYING)
        for key in unit.exports:
            self.registry.withdraw(key)
        self._transition(name, UnitState.DESTROYED)
