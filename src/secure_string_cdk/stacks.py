# Standard Library
from typing import Optional

# Third Party
from aws_cdk import (
    CfnOutput,
    RemovalPolicy,
    Stack,
    aws_kms as kms,
)
from constructs import Construct

# Local Modules
from secure_string.utils import PolicyScope, RemovalPolicyOption
from secure_string_cdk.custom_constructs import SecureStringParameter


def _context_flag(value) -> bool:
    # Values given with --context arrive as strings
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


class SecureStringParameterStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        parameter_value: str,
        stack_suffix: Optional[str] = "",
        **kwargs,
    ) -> None:
        """Secure String Parameter Stack for AWS CDK.

        The parameter name, key and policies are read from the CDK context,
        the plaintext value is passed in so it never lives in cdk.json.

        Parameters
        ----------
        scope : Construct
            The scope in which this construct is defined.
        construct_id : str
            The ID of the construct.
        parameter_value : str
            The plaintext value of the parameter.
        stack_suffix : Optional[str], optional
            Suffix appended to the KMS key alias, by default ""
        """
        super().__init__(scope, construct_id, **kwargs)

        # region Context Configuration
        self.stack_suffix = (stack_suffix if stack_suffix else "").lower()
        self.parameter_name = self.node.try_get_context("parameter_name")
        self.key_id = self.node.try_get_context("key_id")
        removal_policy = RemovalPolicyOption(
            self.node.try_get_context("removal_policy") or "destroy"
        )
        policy_scope_name = self.node.try_get_context("policy_scope")
        policy_scope = (
            PolicyScope(policy_scope_name) if policy_scope_name else None
        )
        read_back = _context_flag(self.node.try_get_context("read_back"))
        # endregion

        # region Encryption Key
        # Without a configured key id the stack owns its key
        if self.key_id:
            key = self.key_id
        else:
            key = kms.Key(
                self,
                "ParameterKey",
                alias=f"alias/secure-string-parameter{self.stack_suffix}",
                enable_key_rotation=True,
                removal_policy=RemovalPolicy.DESTROY,
            )
        # endregion

        # region SecureString Parameter
        self.parameter = SecureStringParameter(
            self,
            "SecureStringParameter",
            parameter_name=self.parameter_name,
            value=parameter_value,
            key=key,
            removal_policy=(
                RemovalPolicy.RETAIN
                if removal_policy == RemovalPolicyOption.retain
                else RemovalPolicy.DESTROY
            ),
            policy_scope=policy_scope,
        )

        # Deploy-time value for downstream constructs, read after the write
        self.parameter_value = (
            self.parameter.read_value("SecureStringParameterValue")
            if read_back
            else None
        )

        CfnOutput(
            self,
            "ParameterNameOutput",
            value=self.parameter.parameter_name,
            description="Name of the SecureString parameter",
        )
        CfnOutput(
            self,
            "ParameterArnOutput",
            value=self.parameter.parameter_arn,
            description="ARN of the SecureString parameter",
        )
        # endregion
