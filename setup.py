"""
Setup script for the doublesix-sync package.

The public API (session, runner, types, errors) and the internal
modules (_core, _shared) ship as plain Python source.
"""

from setuptools import setup, find_packages

setup(
    name="doublesix-sync",
    version="1.0.0",
    description="Client-side sync engine for the Double Six dice game service",
    author="Double Six Team",
    license="MIT",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
        "httpx>=0.25.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4",
            "build",
            "wheel",
        ],
    },
    entry_points={
        "console_scripts": [
            "doublesix-sync=doublesix_sync.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
