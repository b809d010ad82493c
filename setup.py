#!/usr/bin/env python3
"""Setup script for httptrace."""

from setuptools import setup, find_packages

setup(
    name="httptrace",
    version="0.1.0",
    description="Wire-level tracing of httpx requests and responses",
    author="httptrace Team",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0.0",
        "python-dotenv>=0.19.0",
        "httpx>=0.24.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "httptrace=httptrace.cli.commands:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.13",
    ],
)
