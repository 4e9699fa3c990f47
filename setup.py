"""
Setup script for the tictactoe-lan package.

Internal subpackages (_core, _session, _shared) ship as plain Python
alongside the public modules (types, errors, config, runner, console, cli).
"""

from setuptools import setup, find_packages

setup(
    name="tictactoe-lan",
    version="1.0.0",
    description="Two-player tic-tac-toe with an authoritative host, state replication and LAN discovery",
    license="MIT",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
        "dev": [
            "pytest>=7.0",
            "build",
            "wheel",
        ],
    },
    entry_points={
        "console_scripts": [
            "tictactoe-lan=tictactoe_lan.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Games/Entertainment :: Board Games",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
