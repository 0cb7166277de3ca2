"""Unit tests for the ssm module."""

# Standard Library
from unittest.mock import MagicMock, patch

# Third Party
import boto3
import pytest
from botocore.exceptions import ClientError, NoCredentialsError
from botocore.stub import Stubber

# Local Modules
from secure_string.actions import build_parameter_actions, build_reader_actions
from secure_string.aws.ssm import SsmClient
from secure_string.models import (
    ParameterSpec,
    RawKeyId,
    SdkCall,
    StackContext,
)
from secure_string.utils import LifecycleTrigger


def _client_error(code, operation):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestSsmClient:
    """Test cases for the SsmClient class."""

    def setup_method(self):
        """Set up test fixtures before each test method."""
        self.parameter_name = "/app/db/password"
        self.parameter_value = "s3cr3t"
        self.key_id = "arn:aws:kms:us-east-1:123456789012:key/abc"

    @patch("secure_string.aws.ssm.boto3.client")
    def test_init_success_with_region(self, mock_boto3_client):
        """Test successful initialization with region_name."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client

        ssm_client = SsmClient(region_name="us-west-2")

        mock_boto3_client.assert_called_once_with(
            "ssm", region_name="us-west-2"
        )
        assert ssm_client.client == mock_client

    @patch("secure_string.aws.ssm.boto3.client")
    @patch("secure_string.aws.ssm.logger")
    def test_init_failure_no_credentials(self, mock_logger, mock_boto3_client):
        """Test initialization failure due to missing credentials."""
        error = NoCredentialsError()
        mock_boto3_client.side_effect = error

        with pytest.raises(NoCredentialsError):
            SsmClient()

        mock_logger.error.assert_called_once_with(
            "Failed to create SSM client: %s", error
        )

    @patch("secure_string.aws.ssm.boto3.client")
    def test_get_parameter_with_decryption(self, mock_boto3_client):
        """Test successful parameter retrieval with decryption."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client
        mock_client.get_parameter.return_value = {
            "Parameter": {
                "Name": self.parameter_name,
                "Type": "SecureString",
                "Value": self.parameter_value,
                "Version": 1,
            }
        }

        result = SsmClient().get_parameter(
            self.parameter_name, with_decryption=True
        )

        mock_client.get_parameter.assert_called_once_with(
            Name=self.parameter_name, WithDecryption=True
        )
        assert result == self.parameter_value

    @patch("secure_string.aws.ssm.boto3.client")
    def test_get_parameter_missing_value_key(self, mock_boto3_client):
        """Test parameter retrieval with a response lacking the value."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client
        mock_client.get_parameter.return_value = {}

        assert SsmClient().get_parameter(self.parameter_name) is None

    @patch("secure_string.aws.ssm.boto3.client")
    @patch("secure_string.aws.ssm.logger")
    def test_get_parameter_not_found(self, mock_logger, mock_boto3_client):
        """Test that an absent parameter yields None with a warning."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client
        mock_client.get_parameter.side_effect = _client_error(
            "ParameterNotFound", "GetParameter"
        )

        result = SsmClient().get_parameter(self.parameter_name)

        assert result is None
        mock_logger.warning.assert_called_once_with(
            f"Parameter {self.parameter_name} does not exist"
        )
        mock_logger.error.assert_not_called()

    @patch("secure_string.aws.ssm.boto3.client")
    @patch("secure_string.aws.ssm.logger")
    def test_get_parameter_key_access_error(
        self, mock_logger, mock_boto3_client
    ):
        """Test that a KMS access failure propagates."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client
        error = _client_error("AccessDeniedException", "GetParameter")
        mock_client.get_parameter.side_effect = error

        with pytest.raises(ClientError):
            SsmClient().get_parameter(
                self.parameter_name, with_decryption=True
            )

        mock_logger.error.assert_called_once_with(
            f"Failed to get parameter {self.parameter_name}: {error}"
        )

    @patch("secure_string.aws.ssm.boto3.client")
    def test_put_secure_string(self, mock_boto3_client):
        """Test writing a new SecureString parameter."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client
        mock_client.put_parameter.return_value = {"Version": 1}

        version = SsmClient().put_secure_string(
            self.parameter_name, self.parameter_value, self.key_id
        )

        mock_client.put_parameter.assert_called_once_with(
            Name=self.parameter_name,
            Value=self.parameter_value,
            Type="SecureString",
            KeyId=self.key_id,
        )
        assert version == 1

    @patch("secure_string.aws.ssm.boto3.client")
    def test_put_secure_string_overwrite(self, mock_boto3_client):
        """Test overwriting an existing SecureString parameter."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client
        mock_client.put_parameter.return_value = {"Version": 2}

        version = SsmClient().put_secure_string(
            self.parameter_name,
            self.parameter_value,
            self.key_id,
            overwrite=True,
        )

        mock_client.put_parameter.assert_called_once_with(
            Name=self.parameter_name,
            Value=self.parameter_value,
            Type="SecureString",
            KeyId=self.key_id,
            Overwrite=True,
        )
        assert version == 2

    @patch("secure_string.aws.ssm.boto3.client")
    @patch("secure_string.aws.ssm.logger")
    def test_put_secure_string_already_exists(
        self, mock_logger, mock_boto3_client
    ):
        """Test that a name collision without overwrite propagates."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client
        error = _client_error("ParameterAlreadyExists", "PutParameter")
        mock_client.put_parameter.side_effect = error

        with pytest.raises(ClientError):
            SsmClient().put_secure_string(
                self.parameter_name, self.parameter_value, self.key_id
            )

        mock_logger.error.assert_called_once_with(
            f"Failed to put parameter {self.parameter_name}: {error}"
        )
        # The plaintext must not leak into the log line
        assert self.parameter_value not in str(mock_logger.mock_calls)

    @patch("secure_string.aws.ssm.boto3.client")
    def test_delete_parameter(self, mock_boto3_client):
        """Test deleting an existing parameter."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client

        assert SsmClient().delete_parameter(self.parameter_name) is True
        mock_client.delete_parameter.assert_called_once_with(
            Name=self.parameter_name
        )

    @patch("secure_string.aws.ssm.boto3.client")
    def test_delete_parameter_already_absent(self, mock_boto3_client):
        """Test that deleting a missing parameter succeeds."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client
        mock_client.delete_parameter.side_effect = _client_error(
            "ParameterNotFound", "DeleteParameter"
        )

        assert SsmClient().delete_parameter(self.parameter_name) is False

    @patch("secure_string.aws.ssm.boto3.client")
    def test_delete_parameter_access_denied(self, mock_boto3_client):
        """Test that a permission error on delete propagates."""
        mock_client = MagicMock()
        mock_boto3_client.return_value = mock_client
        mock_client.delete_parameter.side_effect = _client_error(
            "AccessDeniedException", "DeleteParameter"
        )

        with pytest.raises(ClientError):
            SsmClient().delete_parameter(self.parameter_name)

    @patch("secure_string.aws.ssm.boto3.client")
    def test_invoke_rejects_other_services(self, mock_boto3_client):
        """Test that only SSM calls can be invoked."""
        mock_boto3_client.return_value = MagicMock()

        with pytest.raises(ValueError, match="Unsupported service"):
            SsmClient().invoke(SdkCall(service="KMS", action="encrypt"))

    @patch("secure_string.aws.ssm.boto3.client")
    def test_invoke_uses_region_of_call(self, mock_boto3_client):
        """Test that a cross-region call gets its own regional client."""
        default_client = MagicMock()
        default_client.meta.region_name = "us-east-1"
        regional_client = MagicMock()
        mock_boto3_client.side_effect = [default_client, regional_client]
        regional_client.get_parameter.return_value = {
            "Parameter": {"Value": self.parameter_value}
        }

        response = SsmClient(region_name="us-east-1").invoke(
            SdkCall(
                action="getParameter",
                parameters={"Name": self.parameter_name},
                region="eu-west-1",
            )
        )

        mock_boto3_client.assert_called_with("ssm", region_name="eu-west-1")
        regional_client.get_parameter.assert_called_once_with(
            Name=self.parameter_name
        )
        default_client.get_parameter.assert_not_called()
        assert response["Parameter"]["Value"] == self.parameter_value


class TestSsmClientLifecycleCalls:
    """Run the built lifecycle calls against a stubbed SSM API.

    The stubber validates every request against the botocore service model,
    so these tests confirm the descriptors map onto real SSM operations.
    """

    def setup_method(self):
        """Set up test fixtures before each test method."""
        self.context = StackContext(
            region="us-east-1", account_id="123456789012"
        )
        self.name = "/app/db/password"
        self.value = "s3cr3t"
        self.key_id = "arn:aws:kms:us-east-1:123456789012:key/abc"
        self.actions = build_parameter_actions(
            ParameterSpec(
                name=self.name,
                value=self.value,
                key=RawKeyId(key_id=self.key_id),
            ),
            self.context,
        )

        self.boto_client = boto3.client("ssm", region_name="us-east-1")
        with patch(
            "secure_string.aws.ssm.boto3.client",
            return_value=self.boto_client,
        ):
            self.ssm_client = SsmClient(region_name="us-east-1")

    def test_create_writes_secure_string(self):
        """Test the create call end to end."""
        stubber = Stubber(self.boto_client)
        stubber.add_response(
            "put_parameter",
            {"Version": 1, "Tier": "Standard"},
            expected_params={
                "Name": self.name,
                "Value": self.value,
                "Type": "SecureString",
                "KeyId": self.key_id,
            },
        )

        with stubber:
            response = self.ssm_client.invoke(
                self.actions.call_for(LifecycleTrigger.on_create)
            )

        assert response["Version"] == 1
        stubber.assert_no_pending_responses()

    def test_update_with_identical_values_is_accepted(self):
        """Test that re-writing the created values overwrites."""
        stubber = Stubber(self.boto_client)
        stubber.add_response(
            "put_parameter",
            {"Version": 2, "Tier": "Standard"},
            expected_params={
                "Name": self.name,
                "Value": self.value,
                "Type": "SecureString",
                "KeyId": self.key_id,
                "Overwrite": True,
            },
        )

        with stubber:
            response = self.ssm_client.invoke(
                self.actions.call_for(LifecycleTrigger.on_update)
            )

        assert response["Version"] == 2
        stubber.assert_no_pending_responses()

    def test_delete_of_missing_parameter_is_ignored(self):
        """Test that the delete call swallows only ParameterNotFound."""
        stubber = Stubber(self.boto_client)
        stubber.add_client_error(
            "delete_parameter",
            service_error_code="ParameterNotFound",
            http_status_code=400,
            expected_params={"Name": self.name},
        )

        with stubber:
            response = self.ssm_client.invoke(
                self.actions.call_for(LifecycleTrigger.on_delete)
            )

        assert response == {}
        stubber.assert_no_pending_responses()

    def test_create_key_access_error_propagates(self):
        """Test that a KMS failure on create is surfaced."""
        stubber = Stubber(self.boto_client)
        stubber.add_client_error(
            "put_parameter",
            service_error_code="InvalidKeyId",
            http_status_code=400,
        )

        with stubber, pytest.raises(ClientError):
            self.ssm_client.invoke(
                self.actions.call_for(LifecycleTrigger.on_create)
            )

    def test_reader_gets_decrypted_value(self):
        """Test the reader call end to end."""
        reader = build_reader_actions(self.name, self.context)
        stubber = Stubber(self.boto_client)
        stubber.add_response(
            "get_parameter",
            {
                "Parameter": {
                    "Name": self.name,
                    "Type": "SecureString",
                    "Value": self.value,
                    "Version": 1,
                }
            },
            expected_params={"Name": self.name, "WithDecryption": True},
        )

        with stubber:
            response = self.ssm_client.invoke(
                reader.call_for(LifecycleTrigger.on_create)
            )

        assert response["Parameter"]["Value"] == self.value
        stubber.assert_no_pending_responses()
