#!/usr/bin/env python3
"""
CDK application for the SecureString parameter stack.

Usage:
    SECURE_PARAMETER_VALUE=... cdk synth
    SECURE_PARAMETER_VALUE=... cdk deploy --context parameter_name=/app/db/password
"""

# Third Party
from aws_cdk import App, Environment, Tags

# Local Modules
from secure_string.utils.config import (
    CDK_DEFAULT_ACCOUNT,
    CDK_DEFAULT_REGION,
    SECURE_PARAMETER_VALUE,
    STACK_SUFFIX,
)
from secure_string_cdk.stacks import SecureStringParameterStack

if not SECURE_PARAMETER_VALUE:
    raise ValueError(
        "SECURE_PARAMETER_VALUE must be set to the plaintext parameter value"
    )

app = App()

SecureStringParameterStack(
    app,
    f"SecureStringParameterStack{STACK_SUFFIX}",
    parameter_value=SECURE_PARAMETER_VALUE,
    stack_suffix=STACK_SUFFIX,
    env=Environment(account=CDK_DEFAULT_ACCOUNT, region=CDK_DEFAULT_REGION),
    description="SSM SecureString parameter managed by a custom resource",
)

Tags.of(app).add("ManagedBy", "CDK")

app.synth()
