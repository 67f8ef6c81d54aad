"""
Namespace resolution and the `{application}-{environment}-{suffix}` naming convention

The same string is used as the physical resource name and as the
CloudFormation export key, so producers and consumers never disagree.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from .config import DEFAULT_APPLICATION, DEFAULT_ENVIRONMENT, DEFAULT_REDIRECT_URI

logger = logging.getLogger(__name__)

# Export suffixes shared between the stacks
DDB_STREAM_ARN = "ddb-stream-arn"
DDB_ARN = "ddb-arn"
COGNITO_USER_POOL_ID = "cognito-user-pool-id"
COGNITO_CLIENT_ID = "cognito-client-id"
COGNITO_IDENTITY_POOL_ID = "cognito-identity-pool-id"
COGNITO_UI_URL = "cognito-ui-url"

EXPORT_SUFFIXES = (
    DDB_STREAM_ARN,
    DDB_ARN,
    COGNITO_USER_POOL_ID,
    COGNITO_CLIENT_ID,
    COGNITO_IDENTITY_POOL_ID,
    COGNITO_UI_URL,
)

LOGIN_SCOPES = ("email", "openid", "phone", "profile")


@dataclass(frozen=True)
class Namespace:
    """Resolved naming inputs for one deployable unit"""

    application: str = DEFAULT_APPLICATION
    environment: str = DEFAULT_ENVIRONMENT

    @property
    def prefix(self) -> str:
        return f"{self.application}-{self.environment}"

    def resource_name(self, suffix: str) -> str:
        return f"{self.prefix}-{suffix}"

    def export_key(self, suffix: str) -> str:
        return self.resource_name(suffix)

    def stack_id(self, unit: str) -> str:
        return self.resource_name(f"{unit}-stack")

    def login_url(
        self,
        region: str,
        client_id: str,
        redirect_uri: str = DEFAULT_REDIRECT_URI,
    ) -> str:
        """
        Hosted UI login URL for the user pool domain named after this namespace

        Args:
            region: AWS region (may be a CDK token)
            client_id: App client id (may be a CDK token)
            redirect_uri: Where the hosted UI sends the authorization code

        Returns:
            The login URL; nothing is validated against the live pool
        """
        return (
            f"https://{self.prefix}.auth.{region}.amazoncognito.com/login"
            f"?client_id={client_id}"
            f"&response_type=code"
            f"&scope={'+'.join(LOGIN_SCOPES)}"
            f"&redirect_uri={quote(redirect_uri, safe=':/')}"
        )


def resolve_namespace(
    application: Optional[str] = None,
    environment: Optional[str] = None,
) -> Namespace:
    """Resolve the two naming inputs, applying defaults for missing values"""
    if application is None:
        application = DEFAULT_APPLICATION
    if environment is None:
        environment = DEFAULT_ENVIRONMENT

    if not application or not environment:
        # Accepted as-is; names like "-dev-ddb-table" may collide across stacks
        logger.warning(
            f"Empty namespace input (application={application!r}, environment={environment!r})"
        )

    return Namespace(application=str(application), environment=str(environment))
