"""AWS clients used outside of deployment to work with SecureString parameters."""

# Local Modules
from secure_string.aws.ssm import SsmClient

__all__ = ["SsmClient"]
