#!/usr/bin/env python3
"""Setup script for viera_tv package."""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="viera-tv",
    version="1.0.0",
    author="",
    author_email="",
    description="Control Panasonic Viera Smart TVs via UPnP/SOAP",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["viera_tv", "viera_tv.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Home Automation",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords="panasonic viera tv upnp soap smart-tv home-automation",
    install_requires=[
        "aiohttp>=3.8.0",
        "cryptography>=3.4",
        "psutil>=5.8.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "viera=viera_tv.cli:main",
        ],
    },
    python_requires=">=3.9",
)
