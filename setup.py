from setuptools import setup, find_packages

setup(
    name="registry-client",
    version="0.1.0",
    packages=find_packages(include=["registry_client", "registry_client.*"]),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.25",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "respx>=0.20",
        ],
    },
)
