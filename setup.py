"""Setup configuration for the guildwarden Discord bot."""

from setuptools import setup, find_packages

setup(
    name="guildwarden",
    version="0.1.0",
    description="A multi-guild Discord bot with spam filtering, middlewares and access-controlled commands",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "py-cord>=2.4",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
        "aiohttp>=3.8",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "guildwarden=guildwarden.main:main",
        ],
    },
)
