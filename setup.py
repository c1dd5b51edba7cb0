# setup.py
from setuptools import setup, find_packages

setup(
    name="bookstack_backup",
    version="0.1.0",
    description="Периодический бэкап BookStack (полки, книги, главы, страницы) в Markdown",
    packages=find_packages(include=["bookstack_backup", "bookstack_backup.*"]),
    install_requires=[
        "aiohttp>=3.9",
        "APScheduler>=3.10,<4",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "markdownify>=0.11",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "bookstack-backup=bookstack_backup.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
