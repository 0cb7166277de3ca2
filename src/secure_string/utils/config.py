"""Environment configuration for the secure string parameter app."""

# Standard Library
import os

# Plaintext value supplied at synth time so it never lands in cdk.json
SECURE_PARAMETER_VALUE = os.getenv("SECURE_PARAMETER_VALUE")

# Suffix appended to the stack name, e.g. "-dev"
STACK_SUFFIX = os.getenv("STACK_SUFFIX", "")

# Target environment for the CDK app
CDK_DEFAULT_ACCOUNT = os.getenv("CDK_DEFAULT_ACCOUNT")
CDK_DEFAULT_REGION = os.getenv("CDK_DEFAULT_REGION")
