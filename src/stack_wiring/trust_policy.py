"""
Federated trust-policy builder for Cognito identity pool roles

Both identity pool roles come from one template so the condition shape
cannot drift between them; only the `amr` literal differs.
"""
from dataclasses import dataclass, field
from typing import Any, Dict

from .errors import InvalidTrustCondition

COGNITO_IDENTITY_PRINCIPAL = "cognito-identity.amazonaws.com"
ASSUME_ROLE_WITH_WEB_IDENTITY = "sts:AssumeRoleWithWebIdentity"

AUTHENTICATED = "authenticated"
UNAUTHENTICATED = "unauthenticated"
AUTHENTICATION_STATES = (AUTHENTICATED, UNAUTHENTICATED)

# Exact match and any-of pattern match
EXACT_MATCH = "StringEquals"
ANY_PATTERN_MATCH = "ForAnyValue:StringLike"
CONDITION_OPERATORS = (EXACT_MATCH, ANY_PATTERN_MATCH)


@dataclass(frozen=True)
class TrustPolicy:
    """Who may assume a role, and under which claim conditions"""

    principal: str
    action: str = ASSUME_ROLE_WITH_WEB_IDENTITY
    conditions: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        """Render as an IAM assume-role policy document"""
        return {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"Federated": self.principal},
                    "Action": self.action,
                    "Condition": self.conditions,
                }
            ],
        }

    def to_principal(self):
        """Render as a CDK ``FederatedPrincipal``"""
        from aws_cdk import aws_iam as iam

        return iam.FederatedPrincipal(
            self.principal,
            conditions=self.conditions,
            assume_role_action=self.action,
        )


class FederatedTrustPolicyBuilder:
    """Builds trust policies for one federation principal"""

    def __init__(self, principal: str = COGNITO_IDENTITY_PRINCIPAL):
        if not principal:
            raise InvalidTrustCondition("A trust policy needs exactly one principal")
        self.principal = principal

    def claim(self, name: str) -> str:
        return f"{self.principal}:{name}"

    def build(self, identity_pool_ref: str, state: str) -> TrustPolicy:
        """
        Build the trust policy for one authentication state

        Args:
            identity_pool_ref: Identity pool id (or CDK token) the `aud` claim must equal
            state: ``authenticated`` or ``unauthenticated``

        Returns:
            TrustPolicy gated on audience and authentication state
        """
        if state not in AUTHENTICATION_STATES:
            raise InvalidTrustCondition(
                f"Authentication state must be one of {AUTHENTICATION_STATES}, got {state!r}"
            )
        if not identity_pool_ref:
            raise InvalidTrustCondition("Identity pool reference is required for the aud condition")

        conditions = {
            EXACT_MATCH: {self.claim("aud"): identity_pool_ref},
            ANY_PATTERN_MATCH: {self.claim("amr"): state},
        }
        validate_conditions(conditions)

        return TrustPolicy(principal=self.principal, conditions=conditions)

    def authenticated(self, identity_pool_ref: str) -> TrustPolicy:
        return self.build(identity_pool_ref, AUTHENTICATED)

    def unauthenticated(self, identity_pool_ref: str) -> TrustPolicy:
        return self.build(identity_pool_ref, UNAUTHENTICATED)


def validate_conditions(conditions: Dict[str, Dict[str, Any]]) -> None:
    """Reject unknown operators and empty claim maps"""
    if not conditions:
        raise InvalidTrustCondition("At least one condition is required")

    for operator, claims in conditions.items():
        if operator not in CONDITION_OPERATORS:
            raise InvalidTrustCondition(f"Unsupported condition operator {operator!r}")
        if not isinstance(claims, dict) or not claims:
            raise InvalidTrustCondition(f"Condition {operator} must map at least one claim")
        for claim, value in claims.items():
            if not claim or value in (None, "", []):
                raise InvalidTrustCondition(f"Condition {operator} has an empty claim or value")
