"""Descriptors and builders for SSM SecureString parameter custom resources.

The builders return immutable ``ResourceActions`` describing the SDK calls a
custom resource makes on create, update and delete, plus the IAM statements
the calls need. The CDK constructs in ``secure_string_cdk`` turn them into
``AwsCustomResource`` instances.
"""

# Local Modules
from secure_string.actions import (
    build_parameter_actions,
    build_reader_actions,
    key_arn,
    parameter_arn,
)
from secure_string.models import (
    KeyHandle,
    LifecycleAction,
    ParameterSpec,
    PermissionStatement,
    RawKeyId,
    ResourceActions,
    SdkCall,
    StackContext,
)

__all__ = [
    "build_parameter_actions",
    "build_reader_actions",
    "key_arn",
    "parameter_arn",
    "KeyHandle",
    "LifecycleAction",
    "ParameterSpec",
    "PermissionStatement",
    "RawKeyId",
    "ResourceActions",
    "SdkCall",
    "StackContext",
]
