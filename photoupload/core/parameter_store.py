"""
AWS Systems Manager Parameter Store lookup for secrets such as the JWT signing key.
Values are cached per process; call get_parameter.cache_clear() after rotation.
"""
from functools import lru_cache
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from photoupload.core.exceptions import PersistenceException


@lru_cache(maxsize=10)
def get_parameter(parameter_name: str, region: str) -> str:
    """
    Fetch a decrypted parameter value.

    Args:
        parameter_name: Full parameter name (e.g., /photo-upload-api/dev/jwt-secret)
        region: AWS region holding the parameter

    Raises:
        PersistenceException: If the parameter is missing, empty or unreadable
    """
    ssm = boto3.client('ssm', region_name=region)
    try:
        response = ssm.get_parameter(Name=parameter_name, WithDecryption=True)
    except ClientError as e:
        if e.response['Error']['Code'] == 'ParameterNotFound':
            raise PersistenceException(f"Parameter {parameter_name} does not exist") from e
        raise PersistenceException(f"Failed to read parameter {parameter_name}") from e
    except BotoCoreError as e:
        raise PersistenceException("Failed to reach Parameter Store") from e

    value = response['Parameter']['Value']
    if not value:
        raise PersistenceException(f"Parameter {parameter_name} is empty")
    return value
