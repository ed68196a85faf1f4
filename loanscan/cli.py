import os

from loanscan.aws import fetch_aws_secret

URL_SCHEMES = ("http://", "https://")


def load_rpc_url_from_cli_arg(rpc_url: str) -> str:
    """
    Load the RPC url either from AWS, from an environment variable or from the
    provided plain value. Node providers embed their API key in the url, which
    is why it is treated as a secret.

    Args:
        rpc_url: The url, prefixed with 'aws:', 'plain:' or 'env:'. Bare http(s)
            urls are accepted as is.

    Returns:
        The resolved url.

    Raises:
        ValueError: If the prefix is invalid or the environment variable is unset.
    """
    if rpc_url.startswith("aws:"):
        secret_name = rpc_url.split("aws:", 1)[1]
        return fetch_aws_secret(secret_name)
    elif rpc_url.startswith("plain:"):
        return rpc_url.split("plain:", 1)[1]
    elif rpc_url.startswith("env:"):
        env_var_name = rpc_url.split("env:", 1)[1]
        value = os.environ.get(env_var_name)
        if not value:
            raise ValueError(f"Environment variable {env_var_name} is not set")
        return value
    elif rpc_url.startswith(URL_SCHEMES):
        return rpc_url
    else:
        raise ValueError(
            "RPC url must be an http(s) url or be prefixed with either 'aws:', 'plain:' or 'env:'"
        )
