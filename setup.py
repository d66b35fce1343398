"""
FileDB setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="filedb",
    version="1.0.0",
    description="FileDB — JSON documents on disk behind a small HTTP interface",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "filedb=filedb.cli:main",
        ],
    },
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.27",
        "pydantic>=2.5",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
