"""
Setup script for levelup-engine.

LevelUp is the adaptive mastery and difficulty engine behind the
vocabulary game. It provides:

1. Mastery model - score gain on answer and time-based decay
2. Difficulty heuristics - cognitive load, momentum and mode adjustment
3. Challenge sessions - Streak, Precision and Deep Dive state machines

The engine is a library; presentation, routing and storage drivers
live in the applications that embed it.
"""

from setuptools import find_packages, setup

setup(
    name="levelup-engine",
    version="1.0.0",
    description="Adaptive mastery and difficulty engine for vocabulary challenges",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="LevelUp",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
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
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning vocabulary mastery adaptive education",
)
