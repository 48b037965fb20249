#!/usr/bin/env python3
"""
Setup script for the AGSi ground model toolkit.
"""

from setuptools import setup, find_namespace_packages
from pathlib import Path

# Read the contents of README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text() if (this_directory / "README.md").exists() else ""

requirements = [
    "jsonschema>=4.17.0",
    "numpy>=1.24.0",
    "shapely>=2.0.0",
    "fastavro>=1.8.0",
    "protobuf>=4.25.0",
]

setup(
    name="agsi",
    version="0.1.0",
    author="Geotechnical Engineering Team",
    description="AGSi ground model data model, validation and serialization toolkit",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["agsi", "agsi.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    include_package_data=True,
    package_data={
        "agsi.resources.schema": ["*.json", "*.avsc"],
    },
    zip_safe=False,
)
