# Standard Library
from enum import Enum


class LifecycleTrigger(str, Enum):
    """Enumeration of custom resource lifecycle triggers.

    Attributes:
        on_create: Invoked when the resource is first created.
        on_update: Invoked when the declared properties change.
        on_delete: Invoked when the resource is removed from the stack.
    """

    on_create = "onCreate"
    on_update = "onUpdate"
    on_delete = "onDelete"


class ParameterType(str, Enum):
    """Enumeration of supported SSM parameter types.

    Attributes:
        secure_string: KMS-encrypted string parameter.
    """

    secure_string = "SecureString"


class RemovalPolicyOption(str, Enum):
    """Enumeration of removal policies for the provisioned parameter.

    Attributes:
        destroy: Delete the remote parameter on stack teardown.
        retain: Leave the remote parameter in place on stack teardown.
    """

    destroy = "destroy"
    retain = "retain"


class PolicyScope(str, Enum):
    """Enumeration of permission scoping strategies.

    Attributes:
        scoped: Grants limited to the exact parameter path and key.
        any_resource: Grants on every resource for the SDK calls made.
    """

    scoped = "scoped"
    any_resource = "any_resource"


class KeyReferenceKind(str, Enum):
    """Enumeration of the ways an encryption key can be referenced.

    Attributes:
        raw_identifier: A plain key id or key ARN string.
        typed_handle: A key object carrying both id and ARN.
    """

    raw_identifier = "raw_identifier"
    typed_handle = "typed_handle"
