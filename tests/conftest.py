import pytest

from loanscan.types import Instrument

DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
VAULT = "0xba12222222228d8ba445958a75a0704d566bf2c8"
RPC_URL = "https://eth.rpc.test"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-2")


@pytest.fixture
def dai_instrument() -> Instrument:
    return Instrument(
        symbol="DAI",
        principal_token="0x" + "11" * 20,
        underlying=DAI,
        pool="0x" + "aa" * 20,
        expiration=1_700_000_000 + 2_592_000,
        unit_seconds=31_536_000,
        pool_id="0x" + "aa" * 20 + "0002" + "00" * 10,
    )


@pytest.fixture
def usdc_instrument() -> Instrument:
    return Instrument(
        symbol="USDC",
        principal_token="0x" + "22" * 20,
        underlying=USDC,
        pool="0x" + "bb" * 20,
    )
