"""This module provides custom constructs for AWS CDK applications.

The constructs included in this module are:
- SecureStringParameter: SSM SecureString parameter managed through an
  AwsCustomResource, with a static reader for its decrypted value.
"""

from .secure_string_parameter import (
    SecureStringParameter,
    stack_context,
    synthesize_custom_resource,
)

__all__ = [
    "SecureStringParameter",
    "stack_context",
    "synthesize_custom_resource",
]
