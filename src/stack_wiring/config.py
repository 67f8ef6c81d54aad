"""
Configuration management for the stack wiring
Reads environment variables; the CDK app layers context values on top
"""
import os


DEFAULT_APPLICATION = "example"
DEFAULT_ENVIRONMENT = "dev"
DEFAULT_REGION = "us-east-1"
DEFAULT_REDIRECT_URI = "http://localhost:3000"


class WiringConfig:
    """Manages configuration from environment variables"""

    def __init__(self):
        self.application = os.environ.get('APPLICATION')
        self.environment = os.environ.get('ENVIRONMENT')
        self.account = os.environ.get('CDK_DEFAULT_ACCOUNT') or os.environ.get('AWS_ACCOUNT_ID')
        self.region = (
            os.environ.get('CDK_DEFAULT_REGION')
            or os.environ.get('AWS_REGION')
            or DEFAULT_REGION
        )
        self.login_redirect_uri = os.environ.get('LOGIN_REDIRECT_URI', DEFAULT_REDIRECT_URI)
        self.log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()

    def with_context(self, node) -> "WiringConfig":
        """Override values from CDK context (``cdk synth -c application=...``)"""
        for key in ('application', 'environment', 'account', 'region', 'login_redirect_uri'):
            value = node.try_get_context(key)
            if value is not None:
                setattr(self, key, value)
        return self


def get_config() -> WiringConfig:
    """Build the configuration from the current environment"""
    return WiringConfig()

