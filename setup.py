"""
This script configures the installation of the 'hostcmd' Python package using setuptools.
Defines the package metadata, dependencies, and entry points for the command-line interface (CLI).
The CLI command 'hostcmd' is linked to the 'cli.hostcmd' function, enabling rendering,
sudo elevation and execution of command lines on local and remote hosts.

Run 'pip install -e .' to install the package in editable mode for development purposes.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="hostcmd",
    version="0.1.0",
    description="Shell-safe command lines and sudo elevation for remote hosts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "omegaconf",
        "click",
        "rich",
    ],
    extras_require={
        "test": ["pytest", "pyyaml"],
    },
    entry_points={
        "console_scripts": ["hostcmd=hostcmd.cli:hostcmd"],
    },
)
