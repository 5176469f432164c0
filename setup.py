from setuptools import setup, find_packages

setup(
    name="cryptotrader",
    version="0.1.0",
    description="Crypto holdings valuation and diversification across exchanges",
    author="cryptotrader",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "ccxt>=4.0.0",
        "httpx>=0.25.0",
        "pydantic>=2.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cryptotrader=cryptotrader.cli:main",
        ],
    },
    python_requires=">=3.8",
)
