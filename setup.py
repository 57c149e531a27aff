"""
Setup script for quizstate.

quizstate keeps a learner's quiz progress (history, wrong-answer notes,
seen questions, configuration and missions) usable offline and synchronized
once the learner signs in:

1. Synced State - each piece of state follows local storage or the remote
   document store depending on who is signed in
2. Code Matching - hierarchical classification codes for filtering
3. Spaced Review - wrong notes ranked by recency, mastery and frequency

The 'quizstate' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="quizstate",
    version="1.0.0",
    description="Offline-first study state engine with synced storage and spaced review",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["quizstate", "quizstate.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "quizstate=quizstate.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="quiz spaced-repetition offline-first sync education",
)
