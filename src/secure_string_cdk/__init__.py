"""CDK constructs and stacks for SSM SecureString parameters."""
