"""
Validation errors raised before anything is submitted to CloudFormation
"""


class WiringError(Exception):
    """Base class for author-time wiring failures"""


class DuplicateExportKey(WiringError):
    """An export key is already published with a different value"""

    def __init__(self, key: str, existing: str, attempted: str, owner: str = None):
        self.key = key
        self.existing = existing
        self.attempted = attempted
        self.owner = owner
        message = f"Export {key!r} already holds {existing!r}, refusing {attempted!r}"
        if owner:
            message += f" (owned by {owner})"
        super().__init__(message)

    @classmethod
    def between_units(cls, key: str, first: str, second: str) -> "DuplicateExportKey":
        error = cls(key, None, None, first)
        error.args = (f"Export {key!r} declared by both {first} and {second}",)
        return error


class UnresolvedImport(WiringError):
    """An import references a key nobody has exported"""

    def __init__(self, key: str, consumer: str = None):
        self.key = key
        self.consumer = consumer
        message = f"No export named {key!r}"
        if consumer:
            message += f" for consumer {consumer}"
        super().__init__(message)


class InvalidTrustCondition(WiringError):
    """A federated trust policy would be malformed"""


class NamespaceCollision(WiringError):
    """Two declarations resolve to the same physical resource name"""

    def __init__(self, name: str, first: str, second: str):
        self.name = name
        self.units = (first, second)
        super().__init__(f"Resource name {name!r} declared by both {first} and {second}")


class DependencyCycle(WiringError):
    """The unit graph contains a cycle"""

    def __init__(self, units):
        self.units = list(units)
        super().__init__(f"Dependency cycle between units: {', '.join(self.units)}")


class InvalidStateTransition(WiringError):
    """A unit was asked to move to a state it cannot reach"""

    def __init__(self, unit: str, current, target):
        self.unit = unit
        self.current = current
        self.target = target
        super().__init__(f"Unit {unit} cannot go from {current.value} to {target.value}")


class ExportInUse(WiringError):
    """A unit cannot be destroyed while a live unit imports its exports"""

    def __init__(self, key: str, consumers):
        self.key = key
        self.consumers = list(consumers)
        super().__init__(f"Export {key!r} is still imported by {', '.join(self.consumers)}")


class MissingExportOutput(WiringError):
    """A provisioned unit did not produce a value for every declared export"""

    def __init__(self, unit: str, keys):
        self.unit = unit
        self.keys = list(keys)
        super().__init__(f"Unit {unit} produced no value for export(s): {', '.join(self.keys)}")
