from setuptools import find_namespace_packages, setup

setup(
    name="whyslow",
    version="0.3.0",
    description="Find which npm dependencies slow down your installs, without installing them.",
    python_requires=">=3.12",
    packages=find_namespace_packages(include=["whyslow", "whyslow.*"]),
    install_requires=[
        "result>=0.17",
        "rich>=13.7",
        "typer>=0.12",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "whyslow=whyslow.cli:main",
        ],
    },
)
