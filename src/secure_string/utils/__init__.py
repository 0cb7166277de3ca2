# Local Modules
from secure_string.utils.enums import (
    LifecycleTrigger,
    ParameterType,
    RemovalPolicyOption,
    PolicyScope,
    KeyReferenceKind,
)

__all__ = [
    "LifecycleTrigger",
    "ParameterType",
    "RemovalPolicyOption",
    "PolicyScope",
    "KeyReferenceKind",
]
