"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/zackees/spire"
KEYWORDS = "build pipeline components compiler transpiler manifest bundler sass"
HERE = os.path.dirname(os.path.abspath(__file__))


def get_version() -> str:
    with open(os.path.join(HERE, "src", "spire", "__init__.py"), encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"')
    raise RuntimeError("Unable to find version string")


if __name__ == "__main__":
    setup(
        name="spire",
        version=get_version(),
        description="Parallel build pipeline for annotated component modules",
        maintainer="Zachary Vorhies",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages("src"),
        install_requires=[
            "psutil",
            "requests",
        ],
        extras_require={
            "test": [
                "pytest",
            ],
        },
        entry_points={
            "console_scripts": [
                "spire=spire.cli:main",
            ],
        },
        include_package_data=True)
