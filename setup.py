#!/usr/bin/env python3
"""
Setup configuration for audiobook-dl
Build yt-dlp download scripts for audiobooks hosted on YouTube
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "yt-dlp>=2023.12.30",
    "click>=8.1.7",
    "rich-click>=1.7.0",
    "rich>=13.7.0",
    "pyyaml>=6.0.1",
    "requests>=2.31.0",
    "tqdm>=4.66.1",
    "python-dotenv>=1.0.0",
]

# Test requirements
test_requirements = [
    "pytest>=7.4.3",
    "pytest-asyncio>=0.21.1",
]

setup(
    name="audiobook-dl",
    version="0.1.0",
    author="audiobook-dl",
    description="Turn a list of YouTube audiobooks into a yt-dlp download script with proper file names",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": test_requirements,
        "test": test_requirements,
    },
    entry_points={
        "console_scripts": [
            "audiobook-dl=audiobook_dl.cli:main",
        ],
    },
    keywords="audiobook youtube yt-dlp download script csv cli",
)
