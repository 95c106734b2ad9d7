# pylint: disable=missing-module-docstring
# ruff: noqa

from pathlib import Path

from setuptools import find_packages, setup


def read_long_description() -> str:
    """Return README contents for PyPI description."""
    readme_path = Path(__file__).with_name("README.md")
    return readme_path.read_text(encoding="utf-8") if readme_path.exists() else "Trend Pulse"


setup(
    name="trend-pulse",
    version="0.1.0",
    description="Google Trends feed with Bluesky engagement and generated summary posts",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",
    python_requires=">=3.11",
    packages=find_packages(
        include=["pulse_engine", "pulse_engine.*", "fetchers", "fetchers.*", "generation_engine", "generation_engine.*"]
    ),
    include_package_data=True,
    install_requires=[
        "httpx>=0.26",
        "pydantic>=2.0",
        "python-dotenv>=1.0",
        "openai>=1.0",
        "anthropic>=0.20",
        "fastapi>=0.110",
        "uvicorn>=0.27",
        "pandas>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "pulse-dashboard = pulse_engine.cli_entrypoints:dashboard",
            "pulse-proxy = pulse_engine.cli_entrypoints:proxy",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
