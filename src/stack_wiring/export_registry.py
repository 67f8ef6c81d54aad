"""
Export/Import registry

An explicit model of CloudFormation cross-stack exports: values are scoped
per (account, region), versioned, and read-after-write consistent. The
CloudFormation-backed variant resolves against the live account and is used
to pre-flight imports before a consumer stack is deployed.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import ClientError

from .errors import DuplicateExportKey, UnresolvedImport

logger = logging.getLogger(__name__)

Scope = Tuple[Optional[str], Optional[str]]


@dataclass
class ExportRecord:
    """Current value of one export"""

    key: str
    value: str
    owner: Optional[str]
    version: int


class ExportRegistry:
    """In-memory, scoped export store"""

    def __init__(self, account: Optional[str] = None, region: Optional[str] = None):
        self.default_scope: Scope = (account, region)
        self._exports: Dict[Scope, Dict[str, ExportRecord]] = {}
        # Survives withdraw so a republished key never reuses a version
        self._versions: Dict[Tuple[Scope, str], int] = {}

    def _scope(self, scope: Optional[Scope]) -> Dict[str, ExportRecord]:
        return self._exports.setdefault(scope or self.default_scope, {})

    def publish(
        self,
        key: str,
        value: str,
        owner: Optional[str] = None,
        scope: Optional[Scope] = None,
    ) -> ExportRecord:
        """
        Publish a value under an export key

        Republishing the identical value is a no-op; a different value is
        rejected regardless of which unit asks.
        """
        exports = self._scope(scope)
        existing = exports.get(key)

        if existing is not None:
            if existing.value != value:
                raise DuplicateExportKey(key, existing.value, value, existing.owner)
            return existing

        version_key = (scope or self.default_scope, key)
        version = self._versions.get(version_key, 0) + 1
        self._versions[version_key] = version

        record = ExportRecord(key=key, value=value, owner=owner, version=version)
        exports[key] = record
        logger.debug(f"Published export {key} (v{version}) from {owner or 'unknown'}")
        return record

    def resolve(self, key: str, consumer: Optional[str] = None, scope: Optional[Scope] = None) -> str:
        """Return the value exported under ``key``"""
        record = self._scope(scope).get(key)
        if record is None:
            raise UnresolvedImport(key, consumer)
        return record.value

    def withdraw(self, key: str, scope: Optional[Scope] = None) -> None:
        """Remove an export (its owning unit was destroyed)"""
        self._scope(scope).pop(key, None)

    def exists(self, key: str, scope: Optional[Scope] = None) -> bool:
        return key in self._scope(scope)

    def version(self, key: str, scope: Optional[Scope] = None) -> int:
        return self._versions.get((scope or self.default_scope, key), 0)

    def owned_by(self, owner: str, scope: Optional[Scope] = None) -> List[str]:
        return [record.key for record in self._scope(scope).values() if record.owner == owner]

    def keys(self, scope: Optional[Scope] = None) -> List[str]:
        return sorted(self._scope(scope))


class CloudFormationExportRegistry:
    """Read-only registry backed by ``cloudformation:ListExports``"""

    def __init__(self, region: Optional[str] = None, client=None):
        self.region = region
        self.cloudformation = client or boto3.client('cloudformation', region_name=region)
        self._cache: Optional[Dict[str, str]] = None

    def refresh(self) -> Dict[str, str]:
        """Reload every export in the account/region"""
        exports: Dict[str, str] = {}
        paginator = self.cloudformation.get_paginator('list_exports')

        try:
            for page in paginator.paginate():
                for export in page.get('Exports', []):
                    exports[export['Name']] = export['Value']
        except ClientError as e:
            logger.error(f"Failed to list CloudFormation exports: {e}")
            raise

        self._cache = exports
        return exports

    def resolve(self, key: str, consumer: Optional[str] = None) -> str:
        exports = self._cache if self._cache is not None else self.refresh()
        if key not in exports:
            raise UnresolvedImport(key, consumer)
        return exports[key]

    def exists(self, key: str) -> bool:
        exports = self._cache if self._cache is not None else self.refresh()
        return key in exports
