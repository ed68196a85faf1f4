from setuptools import find_packages, setup

setup(
    name="loanscan",
    version="0.1.0",
    packages=find_packages(include=["loanscan", "loanscan.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "loanscan=loanscan.main:cli_entrypoint",
        ],
    },
    install_requires=[
        "aiohttp>=3.9",
        "boto3>=1.34",
        "click>=8.1",
        "eth-abi>=5.0",
        "eth-hash[pycryptodome]>=0.5",
        "eth-utils>=4.0",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "typing_extensions>=4.8",
    ],
    extras_require={
        "test": [
            "aioresponses>=0.7.6",
            "aiohttp>=3.9,<3.14",
            "moto[s3,secretsmanager]>=5.0",
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
