#!/usr/bin/env python3

from setuptools import setup, find_packages

# Read the README file for long description
try:
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()
except FileNotFoundError:
    long_description = "pyroifeat - dependency-ordered, multithreaded texture and shape features for labeled ROIs"


# Read requirements from requirements-library.txt
def read_requirements(filename="requirements-library.txt"):
    """Read requirements from requirements-library.txt, ignoring comments and blank lines."""
    with open(filename, "r", encoding="utf-8") as f:
        lines = f.readlines()
    return [
        line.strip()
        for line in lines
        if line.strip() and not line.strip().startswith("#")
    ]


setup(
    name="pyroifeat",
    version="0.1.0",
    description="pyroifeat computes texture (NGTDM) and shape descriptors for every labeled region of "
                "interest of a bioimage, ordering feature computations by their dependencies and running "
                "them over batches of labels in a thread pool.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    license="MIT",
    classifiers=[
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Image Processing",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
        ]
    },
    keywords="bioimage texture-features NGTDM region-of-interest feature-extraction",
)
