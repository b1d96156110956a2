# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="homebase",
    version="0.1.0",
    packages=find_namespace_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "python-dateutil",
        "PySide6",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-qt",
        ],
    },
    entry_points={
        "console_scripts": [
            "homebase=homebase.main:main",
        ],
    },
)
