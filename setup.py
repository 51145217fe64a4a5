"""Setup script for stepgraph."""

from setuptools import find_packages, setup

setup(
    name="stepgraph",
    version="0.1.0",
    description="Execution models and narratives for vendor ETL process definitions",
    author="stepgraph Team",
    packages=find_packages(include=["stepgraph", "stepgraph.*"]),
    install_requires=[
        "networkx>=3.0",  # Step hierarchy and cycle detection
        "typer>=0.9.0",  # Modern CLI framework
        "rich>=13.0.0",  # Terminal tables and trees
        "pyyaml>=6.0",  # Configuration and YAML inputs
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
            "black>=22.1.0",
            "isort>=5.10.1",
            "flake8>=4.0.1",
            "mypy>=1.0.0",  # Type checking
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "stepgraph=stepgraph.cli.main:app",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
