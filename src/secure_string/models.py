"""Immutable descriptors for SecureString parameter custom resources.

Nothing in this module talks to AWS or to the CDK construct tree. The models
describe which SDK calls a custom resource makes on each lifecycle trigger and
which IAM statements the calls need; a separate synthesis step turns them into
constructs.
"""

# Standard Library
import re
from types import MappingProxyType
from typing import (
    Annotated,
    Any,
    List,
    Literal,
    Mapping,
    Optional,
    Tuple,
    Union,
)

# Third Party
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationInfo,
    field_validator,
)

# Local Modules
from secure_string.utils import (
    KeyReferenceKind,
    LifecycleTrigger,
    PolicyScope,
    RemovalPolicyOption,
)

# Characters SSM accepts in a parameter name
PARAMETER_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.\-/]+$")
MAX_PARAMETER_NAME_LENGTH = 1011

# Encoded form of an unresolved CDK string token
_TOKEN_MARKER = "${Token["


def is_unresolved(value: str) -> bool:
    """Return True if the string carries an unresolved CDK token."""
    return _TOKEN_MARKER in value


def validate_parameter_name(name: Optional[str]) -> str:
    """Validate an SSM parameter name.

    Names that contain CDK tokens are only checked for presence, their final
    value is not known until deployment.

    Parameters
    ----------
    name : Optional[str]
        The parameter name, e.g. ``/app/db/password``.

    Returns
    -------
    str
        The unchanged name.

    Raises
    ------
    ValueError
        If the name is missing, too long or contains invalid characters.
    """
    if not name or not name.strip():
        raise ValueError("Parameter name must not be empty")
    if is_unresolved(name):
        return name
    if len(name) > MAX_PARAMETER_NAME_LENGTH:
        raise ValueError(
            f"Parameter name exceeds {MAX_PARAMETER_NAME_LENGTH} characters: "
            f"{name[:40]}..."
        )
    if not PARAMETER_NAME_PATTERN.match(name):
        raise ValueError(
            f"Invalid parameter name '{name}'. Allowed characters are "
            "a-z, A-Z, 0-9, '_', '.', '-' and '/'."
        )
    return name


def _require_text(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field} must not be empty")
    return value


class StackContext(BaseModel):
    """Deployment target used to interpolate ARNs.

    Attributes:
        region: The AWS region, e.g. ``us-east-1``.
        account_id: The 12 digit AWS account id.
        partition: The AWS partition, ``aws`` unless deploying to GovCloud or China.
    """

    model_config = ConfigDict(frozen=True)

    region: str = Field(..., description="AWS region of the stack")
    account_id: str = Field(..., description="AWS account id of the stack")
    partition: str = Field("aws", description="AWS partition of the stack")

    @field_validator("region", "account_id", "partition")
    @classmethod
    def _not_blank(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)


class RawKeyId(BaseModel):
    """A KMS key referenced by its raw key id, alias or ARN string."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["raw_identifier"] = KeyReferenceKind.raw_identifier.value
    key_id: str = Field(..., description="KMS key id or key ARN")

    @field_validator("key_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _require_text(value, "key_id")


class KeyHandle(BaseModel):
    """A KMS key referenced through a typed key object.

    Attributes:
        key_id: The id passed to SSM as ``KeyId``.
        key_arn: The ARN used when scoping permissions to the key.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["typed_handle"] = KeyReferenceKind.typed_handle.value
    key_id: str = Field(..., description="KMS key id")
    key_arn: str = Field(..., description="KMS key ARN")

    @field_validator("key_id", "key_arn")
    @classmethod
    def _not_blank(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)


KeyReference = Annotated[
    Union[RawKeyId, KeyHandle], Field(discriminator="kind")
]


class ParameterSpec(BaseModel):
    """Declared properties of a SecureString parameter.

    Attributes:
        name: Path-like parameter name.
        value: Plaintext value, kept out of ``repr`` and logs.
        key: Reference to the KMS key that encrypts the value.
        removal_policy: What happens to the parameter on stack teardown.
        policy_scope: Explicit permission scoping. When unset, raw key ids
            are scoped and typed key handles get an any-resource grant.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="SSM parameter name")
    value: SecretStr = Field(..., description="Plaintext parameter value")
    key: KeyReference
    removal_policy: RemovalPolicyOption = RemovalPolicyOption.destroy
    policy_scope: Optional[PolicyScope] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, name: str) -> str:
        return validate_parameter_name(name)

    @field_validator("value")
    @classmethod
    def _validate_value(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("Parameter value must not be empty")
        return value

    @property
    def effective_policy_scope(self) -> PolicyScope:
        if self.policy_scope is not None:
            return self.policy_scope
        if self.key.kind == KeyReferenceKind.raw_identifier.value:
            return PolicyScope.scoped
        return PolicyScope.any_resource


class SdkCall(BaseModel):
    """A single AWS SDK call made by the custom resource provider."""

    model_config = ConfigDict(frozen=True)

    service: str = "SSM"
    action: str
    # May hold the plaintext value
    parameters: Mapping[str, Any] = Field(
        default_factory=dict, repr=False, validate_default=True
    )
    physical_resource_id: Optional[str] = None
    ignore_error_codes_matching: Optional[str] = None
    region: Optional[str] = None

    @field_validator("parameters")
    @classmethod
    def _read_only(cls, parameters: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(parameters))


class LifecycleAction(BaseModel):
    """An SDK call bound to a lifecycle trigger."""

    model_config = ConfigDict(frozen=True)

    trigger: LifecycleTrigger
    call: SdkCall


class PermissionStatement(BaseModel):
    """An IAM allow statement required by the lifecycle actions."""

    model_config = ConfigDict(frozen=True)

    actions: Tuple[str, ...]
    resources: Tuple[str, ...]


class ResourceActions(BaseModel):
    """Everything needed to synthesize one custom resource.

    Attributes:
        actions: Lifecycle actions, at most one per trigger.
        statements: IAM statements for the provider's execution role.
        policy_scope: How the statements were scoped.
        removal_policy: Whether teardown invokes the delete action.
        response_field: Response path exposed to callers, if any.
    """

    model_config = ConfigDict(frozen=True)

    actions: Tuple[LifecycleAction, ...]
    statements: Tuple[PermissionStatement, ...]
    policy_scope: PolicyScope = PolicyScope.scoped
    removal_policy: RemovalPolicyOption = RemovalPolicyOption.destroy
    response_field: Optional[str] = None

    @field_validator("actions")
    @classmethod
    def _unique_triggers(
        cls, actions: Tuple[LifecycleAction, ...]
    ) -> Tuple[LifecycleAction, ...]:
        triggers = [action.trigger for action in actions]
        if len(triggers) != len(set(triggers)):
            raise ValueError("Each lifecycle trigger may appear only once")
        return actions

    @property
    def triggers(self) -> Tuple[LifecycleTrigger, ...]:
        return tuple(action.trigger for action in self.actions)

    def action_for(
        self, trigger: LifecycleTrigger
    ) -> Optional[LifecycleAction]:
        for action in self.actions:
            if action.trigger == trigger:
                return action
        return None

    def call_for(self, trigger: LifecycleTrigger) -> Optional[SdkCall]:
        action = self.action_for(trigger)
        return action.call if action else None

    def teardown_calls(self) -> List[SdkCall]:
        """Return the SDK calls stack teardown would make.

        Returns
        -------
        List[SdkCall]
            Empty when the parameter is retained or there is no delete
            action, otherwise the single delete call.
        """
        if self.removal_policy == RemovalPolicyOption.retain:
            return []
        call = self.call_for(LifecycleTrigger.on_delete)
        return [call] if call else []
