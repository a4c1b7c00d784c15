from setuptools import setup, find_packages

setup(
    name="metalease-marketplace",
    version="1.0.0",
    description="MetaLease NFT rental marketplace and rentable token ledger",
    author="jetgause",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config", "api_server"],
    install_requires=[
        "python-dotenv>=1.0.0",
        "fastapi>=0.104.0",
        "pydantic>=2.0.0",
        "uvicorn>=0.24.0",
        "pytest>=7.4.0",
        "httpx>=0.25.0",
    ],
    python_requires=">=3.8",
)
