import json
import boto3

AWS_REGION = "us-east-2"
RPC_URL_COLUMN = "ETH_RPC_URL"


def fetch_aws_secret(
    secret_name: str,
    column: str = RPC_URL_COLUMN,
    region: str = AWS_REGION,
) -> str:
    """
    Loads a secret value from AWS secrets manager.

    Args:
        secret_name: The name of the secret in AWS Secrets Manager.
        column: The JSON key holding the value inside the secret string.
        region: The AWS region where the secret is stored. Defaults to "us-east-2".

    Returns:
        The secret value as a string.
    """
    session = boto3.session.Session()
    client = session.client(service_name="secretsmanager", region_name=region)
    response = client.get_secret_value(SecretId=secret_name)
    return str(json.loads(response["SecretString"])[column])
