"""SSM client wrapper for SecureString parameter operations."""

# Standard Library
import re
from typing import Any, Dict, Optional

# Third Party
import boto3
from botocore import xform_name
from botocore.exceptions import ClientError
from aws_lambda_powertools import Logger

# Local Modules
from secure_string.models import SdkCall
from secure_string.utils import ParameterType

# Initialize logger
logger = Logger(service="ssm-client-wrapper")

PARAMETER_NOT_FOUND = "ParameterNotFound"


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class SsmClient:
    """A wrapper for the Boto3 SSM client."""

    def __init__(self, region_name: Optional[str] = None) -> None:
        try:
            self.client = boto3.client("ssm", region_name=region_name)
        except Exception as e:
            logger.error("Failed to create SSM client: %s", e)
            raise

    def get_parameter(
        self, name: str, with_decryption: bool = False
    ) -> Optional[str]:
        """Get the value of a parameter.

        Parameters
        ----------
        name : str
            The name of the parameter.
        with_decryption : bool, optional
            Whether to decrypt SecureString values, by default False

        Returns
        -------
        Optional[str]
            The parameter value, or None if the parameter does not exist.

        Raises
        ------
        ClientError
            For any failure other than the parameter being absent, e.g. the
            caller lacks ``kms:Decrypt`` on the encrypting key.
        """
        try:
            response = self.client.get_parameter(
                Name=name, WithDecryption=with_decryption
            )
        except ClientError as e:
            if _error_code(e) == PARAMETER_NOT_FOUND:
                logger.warning(f"Parameter {name} does not exist")
                return None
            logger.error(f"Failed to get parameter {name}: {e}")
            raise
        return response.get("Parameter", {}).get("Value")

    def put_secure_string(
        self,
        name: str,
        value: str,
        key_id: str,
        overwrite: bool = False,
    ) -> int:
        """Write a SecureString parameter encrypted with the given key.

        Parameters
        ----------
        name : str
            The name of the parameter.
        value : str
            The plaintext value.
        key_id : str
            The KMS key id, alias or ARN used for encryption.
        overwrite : bool, optional
            Whether to replace an existing parameter, by default False

        Returns
        -------
        int
            The version of the parameter after the write.
        """
        parameters = {
            "Name": name,
            "Value": value,
            "Type": ParameterType.secure_string.value,
            "KeyId": key_id,
        }
        if overwrite:
            parameters["Overwrite"] = True

        try:
            logger.info(f"Writing SecureString parameter {name}")
            response = self.client.put_parameter(**parameters)
        except ClientError as e:
            logger.error(f"Failed to put parameter {name}: {e}")
            raise
        return response.get("Version", 0)

    def delete_parameter(self, name: str) -> bool:
        """Delete a parameter. A parameter that is already gone is not an
        error.

        Parameters
        ----------
        name : str
            The name of the parameter.

        Returns
        -------
        bool
            True if the parameter was deleted, False if it did not exist.
        """
        try:
            logger.info(f"Deleting parameter {name}")
            self.client.delete_parameter(Name=name)
        except ClientError as e:
            if _error_code(e) == PARAMETER_NOT_FOUND:
                logger.warning(f"Parameter {name} was already deleted")
                return False
            logger.error(f"Failed to delete parameter {name}: {e}")
            raise
        return True

    def invoke(self, call: SdkCall) -> Dict[str, Any]:
        """Run a single lifecycle SDK call against SSM.

        Parameters
        ----------
        call : SdkCall
            The call descriptor, e.g. the onCreate action of a parameter.
            Calls carrying a different region use a client for that region.

        Returns
        -------
        Dict[str, Any]
            The raw response, or an empty dict when the error code matched
            ``call.ignore_error_codes_matching``.

        Raises
        ------
        ValueError
            If the call targets a service other than SSM.
        """
        if call.service.lower() != "ssm":
            raise ValueError(
                f"Unsupported service '{call.service}', only SSM calls are "
                "handled"
            )

        client = self.client
        if call.region and call.region != client.meta.region_name:
            client = boto3.client("ssm", region_name=call.region)

        operation = getattr(client, xform_name(call.action))
        try:
            logger.info(f"Invoking SSM {call.action}")
            return operation(**call.parameters)
        except ClientError as e:
            pattern = call.ignore_error_codes_matching
            if pattern and re.match(pattern, _error_code(e)):
                logger.warning(
                    f"Ignoring {_error_code(e)} from SSM {call.action}"
                )
                return {}
            logger.error(f"SSM {call.action} failed: {e}")
            raise
