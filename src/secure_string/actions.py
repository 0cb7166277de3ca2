"""Builders for the SecureString parameter lifecycle actions.

Both builders are pure: they return a ``ResourceActions`` descriptor and leave
it to the caller to synthesize the custom resource.
"""

# Standard Library
import time
from typing import Callable, Optional

# Third Party
from aws_lambda_powertools import Logger

# Local Modules
from secure_string.models import (
    KeyHandle,
    LifecycleAction,
    ParameterSpec,
    PermissionStatement,
    ResourceActions,
    SdkCall,
    StackContext,
    is_unresolved,
    validate_parameter_name,
)
from secure_string.utils import (
    LifecycleTrigger,
    ParameterType,
    PolicyScope,
    RemovalPolicyOption,
)

# Initialize logger
logger = Logger(service="secure-string-actions")

SSM_SERVICE = "SSM"
PARAMETER_NOT_FOUND = "ParameterNotFound"
VALUE_RESPONSE_FIELD = "Parameter.Value"
ANY_RESOURCE = "*"


def _timestamp_id(now: Optional[Callable[[], float]] = None) -> str:
    """Physical resource id derived from the current time in milliseconds."""
    clock = now or time.time
    return str(int(clock() * 1000))


def parameter_arn(
    name: str, context: StackContext, region: Optional[str] = None
) -> str:
    """Build the ARN of an SSM parameter.

    Parameters
    ----------
    name : str
        The parameter name. Names without a leading slash get one.
    context : StackContext
        Partition, region and account of the stack.
    region : Optional[str], optional
        Region holding the parameter, by default the stack region.

    Returns
    -------
    str
        The parameter ARN.
    """
    # Token names are used as-is, their leading slash is unknown
    path = name
    if not (name.startswith("/") or is_unresolved(name)):
        path = f"/{name}"
    return (
        f"arn:{context.partition}:ssm:{region or context.region}:"
        f"{context.account_id}:parameter{path}"
    )


def key_arn(key_id: str, context: StackContext) -> str:
    """Build the ARN of a KMS key from its id.

    ARNs pass through unchanged. So do unresolved tokens, which are taken to
    be key ARNs such as ``key.key_arn``; pass a key construct to use its id.
    """
    if key_id.startswith("arn:") or is_unresolved(key_id):
        return key_id
    return (
        f"arn:{context.partition}:kms:{context.region}:"
        f"{context.account_id}:key/{key_id}"
    )


def _key_resource(spec: ParameterSpec, context: StackContext) -> str:
    if isinstance(spec.key, KeyHandle):
        return spec.key.key_arn
    return key_arn(spec.key.key_id, context)


def _put_parameters(spec: ParameterSpec, overwrite: bool = False) -> dict:
    parameters = {
        "Name": spec.name,
        "Value": spec.value.get_secret_value(),
        "Type": ParameterType.secure_string.value,
        "KeyId": spec.key.key_id,
    }
    if overwrite:
        parameters["Overwrite"] = True
    return parameters


def build_parameter_actions(
    spec: ParameterSpec,
    context: StackContext,
    now: Optional[Callable[[], float]] = None,
) -> ResourceActions:
    """Build the lifecycle actions that provision a SecureString parameter.

    Create writes the parameter, update overwrites it, and delete removes it.
    Deleting a parameter that is already gone is not treated as a failure.

    Parameters
    ----------
    spec : ParameterSpec
        The validated parameter declaration.
    context : StackContext
        Deployment target used for the permission ARNs.
    now : Optional[Callable[[], float]], optional
        Clock returning epoch seconds, by default ``time.time``.

    Returns
    -------
    ResourceActions
        Three lifecycle actions plus the permission statements they need.
    """
    on_create = SdkCall(
        service=SSM_SERVICE,
        action="putParameter",
        parameters=_put_parameters(spec),
        physical_resource_id=_timestamp_id(now),
    )
    # The physical id from create is kept on update
    on_update = SdkCall(
        service=SSM_SERVICE,
        action="putParameter",
        parameters=_put_parameters(spec, overwrite=True),
    )
    on_delete = SdkCall(
        service=SSM_SERVICE,
        action="deleteParameter",
        parameters={"Name": spec.name},
        ignore_error_codes_matching=PARAMETER_NOT_FOUND,
    )

    scope = spec.effective_policy_scope
    if scope == PolicyScope.any_resource:
        statements = (
            PermissionStatement(
                actions=("ssm:PutParameter", "ssm:DeleteParameter"),
                resources=(ANY_RESOURCE,),
            ),
        )
    else:
        statements = (
            PermissionStatement(
                actions=("ssm:PutParameter", "ssm:DeleteParameter"),
                resources=(parameter_arn(spec.name, context),),
            ),
            PermissionStatement(
                actions=("kms:Encrypt",),
                resources=(_key_resource(spec, context),),
            ),
        )

    logger.debug(
        f"Registered lifecycle actions for parameter {spec.name} "
        f"(key reference: {spec.key.kind}, policy scope: {scope.value})"
    )
    return ResourceActions(
        actions=(
            LifecycleAction(trigger=LifecycleTrigger.on_create, call=on_create),
            LifecycleAction(trigger=LifecycleTrigger.on_update, call=on_update),
            LifecycleAction(trigger=LifecycleTrigger.on_delete, call=on_delete),
        ),
        statements=statements,
        policy_scope=scope,
        removal_policy=spec.removal_policy,
    )


def build_reader_actions(
    name: str,
    context: StackContext,
    region: Optional[str] = None,
    now: Optional[Callable[[], float]] = None,
) -> ResourceActions:
    """Build the lifecycle actions that read back a decrypted parameter.

    Create and update share a physical id taken from the current time, so
    every deployment re-runs the read instead of reusing the first result.
    There is no delete action.

    Parameters
    ----------
    name : str
        The parameter name.
    context : StackContext
        Deployment target used for the permission ARNs.
    region : Optional[str], optional
        Region to read from, by default the stack region.
    now : Optional[Callable[[], float]], optional
        Clock returning epoch seconds, by default ``time.time``.

    Returns
    -------
    ResourceActions
        Create and update actions exposing ``Parameter.Value``.
    """
    validate_parameter_name(name)
    target_region = region or context.region
    physical_resource_id = _timestamp_id(now)

    def get_parameter() -> SdkCall:
        return SdkCall(
            service=SSM_SERVICE,
            action="getParameter",
            parameters={"Name": name, "WithDecryption": True},
            physical_resource_id=physical_resource_id,
            region=region,
        )

    # The key used at write time is unknown, so decrypt covers every key
    statements = (
        PermissionStatement(
            actions=("ssm:GetParameter",),
            resources=(parameter_arn(name, context, region=target_region),),
        ),
        PermissionStatement(
            actions=("kms:Decrypt",),
            resources=(
                f"arn:{context.partition}:kms:{target_region}:"
                f"{context.account_id}:key/*",
            ),
        ),
    )

    logger.debug(
        f"Registered read actions for parameter {name} in {target_region}"
    )
    return ResourceActions(
        actions=(
            LifecycleAction(
                trigger=LifecycleTrigger.on_create, call=get_parameter()
            ),
            LifecycleAction(
                trigger=LifecycleTrigger.on_update, call=get_parameter()
            ),
        ),
        statements=statements,
        policy_scope=PolicyScope.scoped,
        removal_policy=RemovalPolicyOption.destroy,
        response_field=VALUE_RESPONSE_FIELD,
    )
