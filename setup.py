from setuptools import setup, find_packages

setup(
    name="thinker",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyyaml",
        # Structural parsing of the target bundle
        "tree-sitter>=0.22",
        "tree-sitter-javascript",
        "tree-sitter-typescript",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "thinker=thinker.cli:main",
        ],
    },
    author="Uday Kanth",
    description="Keeps Claude Code's thinking panel expanded and colours it.",
)
