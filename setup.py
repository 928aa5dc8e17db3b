from setuptools import setup, find_packages

setup(
    name="release-issues",
    version="1.0.0",
    description="Find GitHub issues reported after a project release",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "aiohttp>=3.9.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "release-issues=release_issues.cli:main",
        ],
    },
)
