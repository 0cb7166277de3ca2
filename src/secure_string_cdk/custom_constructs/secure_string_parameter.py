# Standard Library
from typing import List, Optional, Sequence, Union

# Third Party
from aws_cdk import (
    RemovalPolicy,
    Stack,
    aws_iam as iam,
    aws_kms as kms,
    custom_resources as cr,
)
from constructs import Construct, IConstruct

# Local Modules
from secure_string import (
    KeyHandle,
    ParameterSpec,
    RawKeyId,
    ResourceActions,
    SdkCall,
    StackContext,
    build_parameter_actions,
    build_reader_actions,
    parameter_arn,
)
from secure_string.utils import (
    LifecycleTrigger,
    PolicyScope,
    RemovalPolicyOption,
)

# Keyword argument of AwsCustomResource for each lifecycle trigger
_TRIGGER_KWARGS = {
    LifecycleTrigger.on_create: "on_create",
    LifecycleTrigger.on_update: "on_update",
    LifecycleTrigger.on_delete: "on_delete",
}


def stack_context(scope: Construct) -> StackContext:
    """Read the partition, region and account of the enclosing stack."""
    stack = Stack.of(scope)
    return StackContext(
        region=stack.region,
        account_id=stack.account,
        partition=stack.partition,
    )


def key_reference(key: Union[str, kms.IKey]) -> Union[RawKeyId, KeyHandle]:
    """Wrap a raw key id string or a KMS key object in a key reference."""
    if isinstance(key, str):
        return RawKeyId(key_id=key)
    if hasattr(key, "key_id") and hasattr(key, "key_arn"):
        return KeyHandle(key_id=key.key_id, key_arn=key.key_arn)
    raise TypeError(
        f"Expected a key id string or a KMS key, got {type(key).__name__}"
    )


def removal_policy_option(
    removal_policy: Optional[RemovalPolicy],
) -> RemovalPolicyOption:
    if removal_policy is None or removal_policy == RemovalPolicy.DESTROY:
        return RemovalPolicyOption.destroy
    if removal_policy == RemovalPolicy.RETAIN:
        return RemovalPolicyOption.retain
    raise ValueError(
        f"Unsupported removal policy {removal_policy}, "
        "use RemovalPolicy.DESTROY or RemovalPolicy.RETAIN"
    )


def to_aws_sdk_call(
    call: SdkCall, output_paths: Optional[List[str]] = None
) -> cr.AwsSdkCall:
    physical_resource_id = None
    if call.physical_resource_id is not None:
        physical_resource_id = cr.PhysicalResourceId.of(
            call.physical_resource_id
        )
    return cr.AwsSdkCall(
        service=call.service,
        action=call.action,
        parameters=dict(call.parameters),
        physical_resource_id=physical_resource_id,
        ignore_error_codes_matching=call.ignore_error_codes_matching,
        region=call.region,
        output_paths=output_paths,
    )


def to_custom_resource_policy(
    actions: ResourceActions,
) -> cr.AwsCustomResourcePolicy:
    """Turn the descriptor's statements into a custom resource policy.

    Any-resource descriptors derive their IAM actions from the SDK calls,
    scoped descriptors use their statements verbatim.
    """
    if actions.policy_scope == PolicyScope.any_resource:
        return cr.AwsCustomResourcePolicy.from_sdk_calls(
            resources=cr.AwsCustomResourcePolicy.ANY_RESOURCE
        )
    return cr.AwsCustomResourcePolicy.from_statements(
        [
            iam.PolicyStatement(
                actions=list(statement.actions),
                resources=list(statement.resources),
            )
            for statement in actions.statements
        ]
    )


def synthesize_custom_resource(
    scope: Construct,
    id: str,
    actions: ResourceActions,
    output_paths: Optional[List[str]] = None,
) -> cr.AwsCustomResource:
    """Create the AwsCustomResource described by ``actions``.

    Parameters
    ----------
    scope : Construct
        The scope in which the custom resource is defined.
    id : str
        The ID of the custom resource.
    actions : ResourceActions
        Lifecycle actions, permissions and removal policy to synthesize.
    output_paths : Optional[List[str]], optional
        Response paths the provider returns, by default all of them

    Returns
    -------
    cr.AwsCustomResource
        The synthesized custom resource.
    """
    # Delete responses are never read
    calls = {
        _TRIGGER_KWARGS[action.trigger]: to_aws_sdk_call(
            action.call,
            output_paths=(
                None
                if action.trigger == LifecycleTrigger.on_delete
                else output_paths
            ),
        )
        for action in actions.actions
    }
    removal_policy = (
        RemovalPolicy.RETAIN
        if actions.removal_policy == RemovalPolicyOption.retain
        else RemovalPolicy.DESTROY
    )
    return cr.AwsCustomResource(
        scope,
        id,
        policy=to_custom_resource_policy(actions),
        removal_policy=removal_policy,
        install_latest_aws_sdk=False,
        **calls,
    )


class SecureStringParameter(Construct):
    """A SecureString parameter in SSM Parameter Store.

    CloudFormation has no native SecureString resource, so the parameter is
    written, overwritten and deleted through SSM SDK calls made by an
    ``AwsCustomResource``.
    """

    @staticmethod
    def value_for_secure_string_parameter(
        scope: Construct,
        id: str,
        parameter_name: str,
        region: Optional[str] = None,
        depends_on: Optional[Sequence[IConstruct]] = None,
        context: Optional[StackContext] = None,
    ) -> str:
        """Return the decrypted value of the latest parameter version.

        The value is fetched at deploy time on every create and update, the
        returned string is a token resolved by CloudFormation.

        Parameters
        ----------
        scope : Construct
            The scope in which the reader is defined.
        id : str
            Prefix for the reader's construct ID.
        parameter_name : str
            The name of the parameter to read.
        region : Optional[str], optional
            Region holding the parameter, by default the stack region
        depends_on : Optional[Sequence[IConstruct]], optional
            Constructs that must be deployed before the read, e.g. the
            resource writing the parameter, by default None
        context : Optional[StackContext], optional
            Explicit deployment target, by default read from the stack

        Returns
        -------
        str
            A token for ``Parameter.Value`` of the GetParameter response.
        """
        actions = build_reader_actions(
            parameter_name, context or stack_context(scope), region=region
        )
        resource = synthesize_custom_resource(
            scope,
            f"{id}GetParameter",
            actions,
            output_paths=[actions.response_field],
        )
        for dependency in depends_on or []:
            resource.node.add_dependency(dependency)
        return resource.get_response_field(actions.response_field)

    def __init__(
        self,
        scope: Construct,
        id: str,
        parameter_name: str,
        value: str,
        key: Union[str, kms.IKey],
        removal_policy: Optional[RemovalPolicy] = RemovalPolicy.DESTROY,
        policy_scope: Optional[PolicyScope] = None,
        context: Optional[StackContext] = None,
    ) -> None:
        """Custom SecureString Parameter Construct for AWS CDK.

        Parameters
        ----------
        scope : Construct
            The scope in which this construct is defined.
        id : str
            The ID of the construct.
        parameter_name : str
            The name of the parameter, e.g. ``/app/db/password``.
        value : str
            The plaintext value to encrypt and store.
        key : Union[str, kms.IKey]
            A KMS key id or ARN, or a KMS key construct.
        removal_policy : Optional[RemovalPolicy], optional
            Whether to delete the parameter when the resource is removed,
            by default RemovalPolicy.DESTROY
        policy_scope : Optional[PolicyScope], optional
            Permission scoping, by default scoped for key ids and any
            resource for KMS key constructs
        context : Optional[StackContext], optional
            Explicit deployment target, by default read from the stack
        """
        # Validate before anything is added to the construct tree
        spec = ParameterSpec(
            name=parameter_name,
            value=value,
            key=key_reference(key),
            removal_policy=removal_policy_option(removal_policy),
            policy_scope=policy_scope,
        )

        super().__init__(scope, id)

        self.context = context or stack_context(self)
        self.parameter_name = parameter_name
        self.parameter_arn = parameter_arn(parameter_name, self.context)
        self.actions = build_parameter_actions(spec, self.context)
        self.resource = synthesize_custom_resource(
            self, f"{id}CustomResource", self.actions
        )

        # The any-resource grant carries no KMS actions, PutParameter still
        # needs kms:Encrypt on a customer managed key
        if (
            self.actions.policy_scope == PolicyScope.any_resource
            and hasattr(key, "grant_encrypt")
        ):
            key.grant_encrypt(self.resource.grant_principal)

    def read_value(self, id: str) -> str:
        """Read this parameter back after it has been written.

        Parameters
        ----------
        id : str
            Prefix for the reader's construct ID.

        Returns
        -------
        str
            A token for the decrypted parameter value.
        """
        return SecureStringParameter.value_for_secure_string_parameter(
            self.node.scope,
            id,
            self.parameter_name,
            depends_on=[self.resource],
            context=self.context,
        )
