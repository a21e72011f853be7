"""Setup configuration for the modwatch Discord moderation bot."""

from setuptools import setup, find_packages

setup(
    name="modwatch",
    version="0.1.0",
    description="Discord moderation bot with automatic content moderation and a review queue API",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.6",
        "aiosqlite>=0.20",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
        "openai>=1.40",
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "pydantic>=2.6",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
    entry_points={
        "console_scripts": [
            "modwatch=modwatch.main:main",
            "modwatch-api=modwatch.api.server:main",
        ],
    },
)
